"""
Pytest fixtures for HomeStock backend tests.

Provides test database setup, two isolated homes, and a test client.

Identities:
- alice: admin of home_a
- bob: member of home_a
- carol: admin of home_b
- mallory: no membership anywhere
"""

import pytest

from homestock import create_app
from homestock.extensions import db
from homestock.services import box_service, home_service, instance_service, item_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def home_a(db_session):
    """Home A, created by alice (admin); bob joins as member."""
    home = home_service.create_home("alice", "Maison A")
    home_service.join_home("bob", home.id)
    return home


@pytest.fixture(scope='function')
def home_b(db_session):
    """Home B, created by carol (admin)."""
    return home_service.create_home("carol", "Maison B")


@pytest.fixture(scope='function')
def box_a(home_a):
    return box_service.create_box("alice", home_a.id, {"label": "B1", "scan_token": "box:1"})


@pytest.fixture(scope='function')
def box_b(home_b):
    return box_service.create_box("carol", home_b.id, {"label": "B-other", "scan_token": "box:b"})


@pytest.fixture(scope='function')
def item_a(home_a):
    return item_service.create_item("alice", home_a.id, {"name": "Câble HDMI"})


@pytest.fixture(scope='function')
def instance_a(box_a, item_a):
    """Five HDMI cables in box B1."""
    return instance_service.create_item_instance(
        "alice", {"item_id": item_a.id, "box_id": box_a.id, "quantity": 5}
    )


def identity_headers(identity: str) -> dict:
    """Helper to create identity headers."""
    return {'X-Identity': identity}
