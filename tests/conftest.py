"""
Shared pytest fixtures for tournament engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.draw import make_rng
from engine.models import Assignment, Player, Team


def make_players(count):
    return [Player(f"p{i + 1}", f"Player {i + 1}") for i in range(count)]


def make_teams(count):
    """Teams rated from strongest to weakest."""
    return [Team(name=f"Team {i + 1}", league="Test League", rating=5 - (i % 5), id=f"t{i + 1}")
            for i in range(count)]


def make_assignments(count):
    return [Assignment(player, team) for player, team in zip(make_players(count), make_teams(count))]


@pytest.fixture
def rng():
    """Seeded random source for reproducible draws."""
    return make_rng(1234)


@pytest.fixture
def sample_players():
    return make_players(4)


@pytest.fixture
def sample_teams():
    return make_teams(6)


@pytest.fixture
def four_assignments():
    return make_assignments(4)


@pytest.fixture
def client():
    """Create an authenticated test client."""
    from app import app
    app.config['TESTING'] = True
    app.config['RNG_SEED'] = 42
    with app.test_client() as client:
        with client.session_transaction() as sess:
            sess['user'] = 'testuser'
        yield client


@pytest.fixture
def anon_client():
    """Create a test client without a session."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at a temporary data directory with one registered user."""
    import app as app_module

    users_file = tmp_path / "users.yaml"
    users_file.write_text(yaml.dump({'users': [
        {'username': 'testuser', 'password_hash': 'unused', 'created': '2026-01-01'}
    ]}, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'USERS_FILE', str(users_file))
    return str(tmp_path)
