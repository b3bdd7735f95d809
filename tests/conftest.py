"""
Test configuration and fixtures for the Turfbook application.
"""
import pytest
import os
from datetime import date, datetime, time, timedelta
from flask import g

# Set environment variables for testing
os.environ.setdefault('SECRET_KEY', 'test-secret-key-for-testing-only')

from turfbook import create_app, db
from turfbook.clock import FixedClock
from turfbook.identity import Identity
from tests.fixtures.factories import (
    MemberFactory, TurfOwnerFactory, TurfFactory, GameFactory,
)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    # Create application context and set up database
    with app.app_context():
        from turfbook import models

        # Create all database tables
        db.create_all()

        yield app

        # Clean up after all tests in session
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        yield db.session

        # Clear all tables for clean state between tests
        try:
            db.session.rollback()
            for table in reversed(db.metadata.sorted_tables):
                db.session.execute(table.delete())
            db.session.commit()
        except Exception:
            db.session.rollback()
        finally:
            db.session.remove()


@pytest.fixture
def clock():
    """A clock frozen at noon today."""
    return FixedClock(datetime.combine(date.today(), time(12, 0)))


@pytest.fixture
def tomorrow():
    return date.today() + timedelta(days=1)


@pytest.fixture
def owner(db_session):
    """Create a turf owner member."""
    return TurfOwnerFactory.create(firstname='Olivia', lastname='Owner')


@pytest.fixture
def player(db_session):
    """Create a player member."""
    return MemberFactory.create(firstname='Pat', lastname='Player')


@pytest.fixture
def other_player(db_session):
    return MemberFactory.create(firstname='Robin', lastname='Rival')


@pytest.fixture
def owner_identity(owner):
    return Identity.from_member(owner)


@pytest.fixture
def player_identity(player):
    return Identity.from_member(player)


@pytest.fixture
def other_identity(other_player):
    return Identity.from_member(other_player)


@pytest.fixture
def turf(db_session, owner):
    """Create a turf open 09:00-21:00 at 500 per hour."""
    return TurfFactory.create(owner=owner, name='Greenfield Arena')


@pytest.fixture
def organizer(db_session):
    return MemberFactory.create(firstname='Oscar', lastname='Organizer')


@pytest.fixture
def organizer_identity(organizer):
    return Identity.from_member(organizer)


@pytest.fixture
def game(db_session, organizer):
    """Create an open tennis game for four with only the organizer on the roster."""
    return GameFactory.create(organizer=organizer)


@pytest.fixture
def login_as(client):
    """Return a helper that logs a member into the test client session, replacing any earlier login."""
    def _login(member):
        with client.session_transaction() as sess:
            sess['_user_id'] = str(member.id)
            sess['_fresh'] = True
        # Requests share the test app context, so drop the user Flask-Login cached on g
        g.pop('_login_user', None)
        return client
    return _login
