"""
Login, registration and logout tests.

Verifies:
- Unknown login, wrong password and blocked account fail identically
- Login works by login name or email and records the login time
- Registration uses the email as login name and the configured role
- Logout everywhere revokes all earlier sessions
"""

import pytest

from ticketdesk.services import auth_service, credential_service, token_service
from ticketdesk.services.auth_service import AuthenticationError
from ticketdesk.services.credential_service import PasswordValidationError
from ticketdesk.validation import ConflictError


class TestAuthenticate:

    def test_login_by_username(self, worker):
        token = auth_service.login("worker@example.com", "Password123")
        assert token_service.extract_subject(token) == worker.username

    def test_login_records_time(self, worker):
        assert worker.last_login_at is None
        auth_service.authenticate(worker.username, "Password123")
        assert worker.last_login_at is not None

    def test_login_by_email_when_username_differs(self, db_session):
        user = credential_service.create_user(
            username="jdoe",
            email="john@example.com",
            name="John",
            surname="Doe",
            password="Password123",
            role="USER",
        )
        assert auth_service.authenticate("john@example.com", "Password123").id == user.id
        assert auth_service.authenticate("jdoe", "Password123").id == user.id

    @pytest.mark.parametrize(
        "identifier,password",
        [
            ("nobody@example.com", "Password123"),
            ("worker@example.com", "wrong-password"),
            ("nobody@example.com", 12345678),
            ("worker@example.com", 12345678),
        ],
    )
    def test_failures_are_uniform(self, worker, identifier, password):
        with pytest.raises(AuthenticationError) as exc:
            auth_service.login(identifier, password)
        assert str(exc.value) == "Invalid credentials"

    def test_blocked_user_gets_same_error(self, worker):
        credential_service.set_blocked(worker.id, True)

        with pytest.raises(AuthenticationError) as exc:
            auth_service.login(worker.username, "Password123")
        assert str(exc.value) == "Invalid credentials"


class TestRegister:

    def test_register(self, app, db_session):
        user, token = auth_service.register(
            email="new@example.com", name="New", surname="Person", password="secret1",
        )
        assert user.username == "new@example.com"
        assert user.role == app.config["REGISTRATION_ROLE"] == "USER"
        assert token_service.verify_token(token, user.username) is True

    def test_register_role_is_configurable(self, app, db_session):
        app.config["REGISTRATION_ROLE"] = "PROJECT_MANAGER"
        try:
            user, _ = auth_service.register(
                email="pm@example.com", name="P", surname="M", password="secret1",
            )
        finally:
            app.config["REGISTRATION_ROLE"] = "USER"
        assert user.role == "PROJECT_MANAGER"

    def test_duplicate_email(self, worker):
        with pytest.raises(ConflictError):
            auth_service.register(
                email="worker@example.com", name="W", surname="W", password="secret1",
            )

    @pytest.mark.parametrize("password", ["", "12345", "x" * 73, "x" * 100, "\u00e9" * 40])
    def test_password_length(self, db_session, password):
        with pytest.raises(PasswordValidationError):
            auth_service.register(
                email="new@example.com", name="New", surname="Person", password=password,
            )

    @pytest.mark.parametrize("password", ["x" * 72, "\u00e9" * 36])
    def test_password_at_byte_limit(self, db_session, password):
        user, _ = auth_service.register(
            email="edge@example.com", name="Edge", surname="Case", password=password,
        )
        assert auth_service.authenticate("edge@example.com", password).id == user.id


class TestLogoutEverywhere:

    def test_revokes_every_session(self, worker):
        first = auth_service.login(worker.username, "Password123")
        second = auth_service.login(worker.username, "Password123")

        auth_service.logout_everywhere(worker)

        assert token_service.verify_token(first, worker.username) is False
        assert token_service.verify_token(second, worker.username) is False

        fresh = auth_service.login(worker.username, "Password123")
        assert token_service.verify_token(fresh, worker.username) is True
