# ticketdesk API Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - An httpx client bound either to an external server (TEST_BACKEND_URL)
#   or to an in-process app through httpx.WSGITransport
# - Failure message formatting
# - Registration/login helpers

import os
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class APITestConfig:
    """Test configuration with environment variable overrides."""
    # Empty means: run against an in-process app
    backend_base_url: str = os.environ.get("TEST_BACKEND_URL", "")

    request_timeout: float = float(os.environ.get("TEST_REQUEST_TIMEOUT", "30"))

    password: str = "TestPass123"


# =============================================================================
# FAILURE MESSAGE HELPER
# =============================================================================

class APITestFailure(Exception):
    """
    Exception with a human-readable failure report.

    Structure:
    1. Scenario: What was being tested
    2. Expected: What should have happened
    3. Actual: What actually happened
    4. Code Location: Where to look in the codebase
    """

    def __init__(
        self,
        scenario: str,
        expected: str,
        actual: str,
        code_location: str,
        response: Optional[httpx.Response] = None,
    ):
        lines = [
            "",
            "=" * 80,
            f"SCENARIO: {scenario}",
            f"EXPECTED: {expected}",
            f"ACTUAL: {actual}",
            f"CODE LOCATION: {code_location}",
        ]
        if response is not None:
            lines.extend([
                "-" * 80,
                f"HTTP STATUS: {response.status_code}",
                f"RESPONSE BODY: {response.text[:1000]}",
            ])
        lines.append("=" * 80)
        super().__init__("\n".join(lines))


def assert_response(response: httpx.Response, expected_status: int, scenario: str, code_location: str):
    """Assert HTTP status; raise APITestFailure with context otherwise."""
    if response.status_code != expected_status:
        raise APITestFailure(
            scenario=scenario,
            expected=f"HTTP {expected_status}",
            actual=f"HTTP {response.status_code}",
            code_location=code_location,
            response=response,
        )


# =============================================================================
# HTTP CLIENT WITH AUTH HELPERS
# =============================================================================

class APIClient:
    """
    HTTP client wrapper with bearer-token handling.
    """

    def __init__(self, client: httpx.Client):
        self.client = client
        self.token: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def get(self, path: str, **kwargs) -> httpx.Response:
        return self.client.get(path, headers=self._headers(), **kwargs)

    def post(self, path: str, json: Optional[Dict[str, Any]] = None, **kwargs) -> httpx.Response:
        return self.client.post(path, headers=self._headers(), json=json, **kwargs)

    def register(self, email: str, password: str) -> httpx.Response:
        response = self.post("/api/auth/register", json={
            "email": email,
            "name": "Api",
            "surname": "Tester",
            "password": password,
        })
        if response.status_code == 201:
            self.token = response.json()["token"]
        return response

    def login(self, login: str, password: str) -> bool:
        """Authenticate and store token."""
        response = self.post("/api/auth/login", json={"login": login, "password": password})
        if response.status_code == 200:
            self.token = response.json()["token"]
            return True
        return False

    def close(self):
        self.client.close()


def _in_process_app():
    from ticketdesk import create_app
    from ticketdesk.config import TestConfig
    from ticketdesk.extensions import db

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    app = create_app(
        TestConfig,
        JWT_PRIVATE_KEY=key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("utf-8"),
        JWT_PUBLIC_KEY=key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("utf-8"),
    )
    with app.app_context():
        db.create_all()
    return app


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def api_config() -> APITestConfig:
    return APITestConfig()


@pytest.fixture(scope="session")
def http_client(api_config):
    if api_config.backend_base_url:
        client = httpx.Client(base_url=api_config.backend_base_url, timeout=api_config.request_timeout)
    else:
        client = httpx.Client(
            transport=httpx.WSGITransport(app=_in_process_app()),
            base_url="http://ticketdesk.test",
        )
    yield client
    client.close()


@pytest.fixture
def client(http_client) -> APIClient:
    """Fresh, unauthenticated API client (shares the connection pool)."""
    return APIClient(http_client)


@pytest.fixture
def unique_email() -> str:
    return f"api-{uuid.uuid4().hex[:12]}@example.com"


@pytest.fixture
def registered(client, api_config, unique_email) -> APIClient:
    """Client logged in as a freshly self-registered account."""
    assert_response(
        client.register(unique_email, api_config.password), 201,
        scenario="Self-registration of a fresh account",
        code_location="backend/ticketdesk/routes/auth.py:register_route",
    )
    return client
