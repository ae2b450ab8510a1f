"""
Shared pytest fixtures for courtside tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from courtside.config import CompetitionConfig


@pytest.fixture
def client(monkeypatch):
    """Create a test client with no server-side config file."""
    import app as app_module
    monkeypatch.setattr(app_module, 'CONFIG_FILE', None)
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def six_teams():
    """Roster for the round robin scenario."""
    return ['A', 'B', 'C', 'D', 'E', 'F']


@pytest.fixture
def eight_teams():
    return [f'T{i}' for i in range(1, 9)]


@pytest.fixture
def default_config():
    return CompetitionConfig()


@pytest.fixture
def teams_file(tmp_path):
    """Teams YAML laid out by pool."""
    path = tmp_path / "teams.yaml"
    path.write_text(yaml.dump({
        'pool1': ['Team A', 'Team B', 'Team C'],
        'pool2': ['Team D', 'Team E'],
    }, default_flow_style=False))
    return str(path)


@pytest.fixture
def config_file(tmp_path):
    """Competition config YAML allowing ties."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({
        'points_for_win': 2,
        'allow_ties': True,
        'points_for_tie': 1,
        'terminology': {'venue': 'table'},
    }, default_flow_style=False))
    return str(path)
