"""
YAML persistence for tournament snapshots.

Layout under the data directory:
    users.yaml                   organizer accounts
    .secret_key                  session signing key
    users/<owner>/state.yaml     live state (mirrored by the spectator view)
    users/<owner>/saves.yaml     named snapshots
    users/<owner>/presets.yaml   custom team presets
    users/<owner>/settings.yaml  rule settings
"""
import logging
import os
import re
import secrets
import tempfile
import time
from typing import Dict, List, Optional

import yaml
from filelock import FileLock
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import IntegrityError, RegistrationError
from .models import Team, TournamentState
from .settings import merge_settings
from .tournament import validate_state

logger = logging.getLogger(__name__)

_OWNER_RE = re.compile(r'^[a-z0-9][a-z0-9-]*$')


def _read_yaml(path: str, default):
    if not os.path.exists(path):
        return default
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning('Failed to parse %s: %s', path, e)
        return default
    return data if data is not None else default


def _write_yaml(path: str, data):
    """Write through a temporary file and rename, so readers never see a partial file."""
    directory = os.path.dirname(path)
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tmp-', suffix='.yaml')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class TournamentStore:
    def __init__(self, data_dir: str, owner: str, lock_timeout: int = 10):
        if not owner or not _OWNER_RE.match(owner):
            raise ValueError(f'Invalid owner name: {owner!r}')
        self.data_dir = data_dir
        self.owner = owner
        self.owner_dir = os.path.join(data_dir, 'users', owner)
        os.makedirs(self.owner_dir, exist_ok=True)
        self.lock = FileLock(os.path.join(self.owner_dir, '.lock'), timeout=lock_timeout)

    def __repr__(self):
        return f"TournamentStore(owner={self.owner}, data_dir={self.data_dir})"

    def _path(self, filename: str) -> str:
        return os.path.join(self.owner_dir, filename)

    @property
    def state_path(self) -> str:
        return self._path('state.yaml')

    # --- live state ---

    def load(self) -> Optional[TournamentState]:
        """Return the live state, or None when absent or unreadable."""
        data = _read_yaml(self.state_path, None)
        if not data:
            return None
        try:
            return TournamentState.from_dict(data)
        except (KeyError, TypeError, ValueError, IntegrityError) as e:
            logger.warning('Discarding corrupt state for %s: %s', self.owner, e)
            return None

    def save(self, state: TournamentState):
        problems = validate_state(state)
        if problems:
            raise IntegrityError('; '.join(problems))
        with self.lock:
            _write_yaml(self.state_path, state.to_dict())

    def clear(self):
        with self.lock:
            if os.path.exists(self.state_path):
                os.remove(self.state_path)

    def state_mtime(self) -> float:
        path = self.state_path
        return os.path.getmtime(path) if os.path.exists(path) else 0.0

    # --- named snapshots ---

    def _load_saves(self) -> List[Dict]:
        return _read_yaml(self._path('saves.yaml'), [])

    def list_snapshots(self) -> List[Dict]:
        """Snapshot metadata, most recently modified first."""
        saves = self._load_saves()
        return sorted(
            ({'id': s['id'], 'name': s['name'], 'last_modified': s['last_modified']} for s in saves),
            key=lambda s: s['last_modified'],
            reverse=True,
        )

    def get_snapshot(self, save_id: str) -> Optional[TournamentState]:
        for save in self._load_saves():
            if save['id'] == save_id:
                return TournamentState.from_dict(save['state'])
        return None

    def save_snapshot(self, state: TournamentState, name: Optional[str] = None) -> Dict:
        name = (name or '').strip() or f"{state.tournament_type or 'Tournament'} - {time.strftime('%Y-%m-%d')}"
        entry = {
            'id': secrets.token_hex(6),
            'name': name,
            'last_modified': time.time(),
            'state': state.to_dict(),
        }
        with self.lock:
            saves = self._load_saves()
            saves.append(entry)
            _write_yaml(self._path('saves.yaml'), saves)
        logger.info('Saved snapshot %s for %s', entry['id'], self.owner)
        return {'id': entry['id'], 'name': name, 'last_modified': entry['last_modified']}

    def update_snapshot(self, save_id: str, state: TournamentState) -> bool:
        with self.lock:
            saves = self._load_saves()
            for save in saves:
                if save['id'] == save_id:
                    save['state'] = state.to_dict()
                    save['last_modified'] = time.time()
                    _write_yaml(self._path('saves.yaml'), saves)
                    return True
        return False

    def delete_snapshot(self, save_id: str) -> bool:
        with self.lock:
            saves = self._load_saves()
            remaining = [s for s in saves if s['id'] != save_id]
            if len(remaining) == len(saves):
                return False
            _write_yaml(self._path('saves.yaml'), remaining)
        return True

    # --- custom presets ---

    def load_presets(self) -> List[Dict]:
        presets = _read_yaml(self._path('presets.yaml'), [])
        return [
            {
                'id': p['id'],
                'name': p['name'],
                'teams': [Team.from_dict(t) for t in p.get('teams', [])],
                'is_custom': True,
            }
            for p in presets
        ]

    def _save_presets(self, presets: List[Dict]):
        _write_yaml(self._path('presets.yaml'), [
            {'id': p['id'], 'name': p['name'], 'teams': [t.to_dict() for t in p['teams']]}
            for p in presets
        ])

    def add_preset(self, preset: Dict):
        with self.lock:
            presets = self.load_presets()
            presets.append(preset)
            self._save_presets(presets)

    def delete_preset(self, preset_id: str) -> bool:
        with self.lock:
            presets = self.load_presets()
            remaining = [p for p in presets if p['id'] != preset_id]
            if len(remaining) == len(presets):
                return False
            self._save_presets(remaining)
        return True

    # --- settings ---

    def load_settings(self) -> Dict:
        return merge_settings(_read_yaml(self._path('settings.yaml'), {}))

    def save_settings(self, settings: Dict):
        with self.lock:
            _write_yaml(self._path('settings.yaml'), merge_settings(settings))


def load_or_create_secret_key(data_dir: str) -> str:
    """Session signing key kept in the data directory, generated on first use."""
    path = os.path.join(data_dir, '.secret_key')
    if os.path.exists(path):
        with open(path, 'r', encoding='utf-8') as f:
            key = f.read().strip()
        if key:
            return key
    os.makedirs(data_dir, exist_ok=True)
    key = secrets.token_hex(32)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(key)
    return key


class OrganizerRegistry:
    """
    Organizer accounts in users.yaml.

    Usernames double as TournamentStore owner names, so they follow the same
    pattern and are compared lower-cased.
    """

    def __init__(self, users_file: str, lock_timeout: int = 10):
        self.users_file = users_file
        self.lock = FileLock(users_file + '.lock', timeout=lock_timeout)

    @staticmethod
    def normalize(username: str) -> str:
        return (username or '').lower().strip()

    def accounts(self) -> List[Dict]:
        data = _read_yaml(self.users_file, {})
        if not isinstance(data, dict):
            return []
        return data.get('users') or []

    def find(self, username: str) -> Optional[Dict]:
        username = self.normalize(username)
        for account in self.accounts():
            if account['username'] == username:
                return account
        return None

    def register(self, username: str, password: str) -> str:
        """Add an organizer and return the stored username.

        Raises:
            RegistrationError: invalid username, short password or a taken name.
        """
        username = self.normalize(username)
        if len(username) < 2 or not _OWNER_RE.match(username):
            raise RegistrationError('Username must be at least 2 characters: letters, numbers, hyphens.')
        if len(password or '') < 4:
            raise RegistrationError('Password must be at least 4 characters.')
        with self.lock:
            accounts = self.accounts()
            if any(a['username'] == username for a in accounts):
                raise RegistrationError('Username already taken.')
            accounts.append({
                'username': username,
                'password_hash': generate_password_hash(password),
                'created': time.strftime('%Y-%m-%dT%H:%M:%S'),
            })
            _write_yaml(self.users_file, {'users': accounts})
        logger.info('Registered organizer %s', username)
        return username

    def check_password(self, username: str, password: str) -> Optional[str]:
        """Return the stored username when the password matches, else None."""
        account = self.find(username)
        if account is None:
            return None
        if check_password_hash(account['password_hash'], password or ''):
            return account['username']
        return None
