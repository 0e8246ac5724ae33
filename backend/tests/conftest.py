"""
Pytest fixtures for ticketdesk backend tests.

Provides the application on in-memory SQLite, a throwaway RSA signing key
pair, a fresh database per test, user/project/ticket factories and bearer
headers.
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ticketdesk import create_app
from ticketdesk.config import TestConfig
from ticketdesk.extensions import db
from ticketdesk.models import Project, Ticket, User
from ticketdesk.services import credential_service, token_service
from ticketdesk.services.history_service import record_creation


DEFAULT_PASSWORD = "Password123"


def _generate_key_pair():
    """Test-only signing keys; production keys always come from configuration."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_key, private_pem, public_pem


@pytest.fixture(scope='session')
def key_pair():
    return _generate_key_pair()


@pytest.fixture(scope='session')
def app(key_pair):
    """Create application for testing."""
    _, private_pem, public_pem = key_pair
    app = create_app(
        TestConfig,
        JWT_PRIVATE_KEY=private_pem,
        JWT_PUBLIC_KEY=public_pem,
    )

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
    """Create fresh database for each test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expunge_all()

    yield db.session

    db.session.rollback()
    db.session.expunge_all()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user(role="USER", email=None, password=DEFAULT_PASSWORD)."""
    counter = {"n": 0}

    def _make(role="USER", email=None, password=DEFAULT_PASSWORD, name="Test", surname="User"):
        counter["n"] += 1
        email = email or f"{role.lower()}{counter['n']}@example.com"
        return credential_service.create_user(
            username=email,
            email=email,
            name=name,
            surname=surname,
            password=password,
            role=role,
        )

    return _make


@pytest.fixture(scope='function')
def admin(make_user):
    return make_user("ADMIN", email="admin@example.com", name="Ada", surname="Admin")


@pytest.fixture(scope='function')
def manager(make_user):
    return make_user("PROJECT_MANAGER", email="manager@example.com", name="Max", surname="Manager")


@pytest.fixture(scope='function')
def worker(make_user):
    return make_user("USER", email="worker@example.com", name="Wanda", surname="Worker")


@pytest.fixture(scope='function')
def other_worker(make_user):
    return make_user("USER", email="other@example.com", name="Otto", surname="Other")


@pytest.fixture(scope='function')
def project(db_session, manager):
    project = Project(name="Tracker", description="Main project", owner_id=manager.id, status="active")
    db_session.add(project)
    db_session.commit()
    return project


@pytest.fixture(scope='function')
def make_ticket(db_session, project, manager):
    """Factory: ticket in the default project, with its CREATED history entry."""

    def _make(name="Broken login", assignee=None, priority="med", description="Steps to reproduce"):
        ticket = Ticket(
            name=name,
            description=description,
            type="bug",
            priority=priority,
            state="open",
            project_id=project.id,
            author_id=manager.id,
            assignee_id=assignee.id if assignee is not None else None,
        )
        db_session.add(ticket)
        db_session.flush()
        record_creation(ticket.id, manager.id)
        db_session.commit()
        return ticket

    return _make


@pytest.fixture(scope='function')
def ticket(make_ticket, worker):
    """Ticket assigned to the worker fixture."""
    return make_ticket(assignee=worker)


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {token_service.issue_token(user)}"}


@pytest.fixture(scope='function')
def auth_headers():
    """Factory: auth_headers(user) -> {"Authorization": "Bearer ..."}"""
    return bearer


@pytest.fixture(scope='function')
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return bearer(manager)


@pytest.fixture(scope='function')
def worker_headers(worker):
    return bearer(worker)


@pytest.fixture(scope='function')
def other_worker_headers(other_worker):
    return bearer(other_worker)
