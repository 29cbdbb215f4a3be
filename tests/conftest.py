"""
Shared fixtures: an in-memory store with the db module's functions,
and a Flask test client wired to it.
"""

import itertools
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app import create_app


class MemoryStore:
    """Stands in for the db module; rows are plain dicts like mysql's dictionary cursor."""

    def __init__(self):
        self.users = {}
        self.grams = {}
        self._user_ids = itertools.count(1)
        self._gram_ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1)

    # users

    def get_user_by_id(self, user_id):
        row = self.users.get(user_id)
        return dict(row) if row else None

    def get_user_by_username(self, username):
        for row in self.users.values():
            if row['username'] == username:
                return dict(row)
        return None

    def get_user_by_email(self, email):
        for row in self.users.values():
            if row['email'] == email:
                return dict(row)
        return None

    def create_user(self, username, email, password_hash):
        user_id = next(self._user_ids)
        self.users[user_id] = {
            'id': user_id,
            'username': username,
            'email': email,
            'password_hash': password_hash,
        }
        return user_id

    # grams

    def _with_username(self, row):
        row = dict(row)
        row['username'] = self.users[row['user_id']]['username']
        return row

    def insert_gram(self, message, user_id, picture=None):
        gram_id = next(self._gram_ids)
        self._clock += timedelta(seconds=1)
        self.grams[gram_id] = {
            'id': gram_id,
            'message': message,
            'picture': picture,
            'user_id': user_id,
            'created_at': self._clock,
        }
        return gram_id

    def get_gram_by_id(self, gram_id):
        row = self.grams.get(gram_id)
        return self._with_username(row) if row else None

    def get_all_grams(self):
        rows = sorted(self.grams.values(), key=lambda r: (r['created_at'], r['id']), reverse=True)
        return [self._with_username(r) for r in rows]

    def update_gram_message(self, gram_id, message):
        self.grams[gram_id]['message'] = message

    def delete_gram(self, gram_id):
        self.grams.pop(gram_id, None)

    def last_gram(self):
        if not self.grams:
            return None
        return self.grams[max(self.grams)]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def app(store, tmp_path):
    app = create_app(store=store, config={
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'UPLOAD_DIR': str(tmp_path / 'uploads'),
    })
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_user(store):
    """Create a user; returns the user id."""
    counter = itertools.count(1)

    def _make_user(username=None, password='secret123'):
        n = next(counter)
        username = username or f'user{n}'
        return store.create_user(username, f'{username}@example.com', generate_password_hash(password))
    return _make_user


@pytest.fixture
def make_gram(store, make_user):
    """Create a gram; owner is a fresh user unless user_id is given. Returns the row."""
    def _make_gram(message='hello', user_id=None):
        if user_id is None:
            user_id = make_user()
        gram_id = store.insert_gram(message, user_id)
        return store.grams[gram_id]
    return _make_gram


@pytest.fixture
def sign_in(client):
    """Put a user id into Flask-Login's session."""
    def _sign_in(user_id):
        with client.session_transaction() as sess:
            sess['_user_id'] = str(user_id)
            sess['_fresh'] = True
    return _sign_in
