"""Pytest fixtures for M-Pesa client tests."""

import json

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from src.integrations.clients.real_http.mpesa import MpesaClient
from src.utils.config_loader import MpesaConfig


class GatewayStub:
    """Records outgoing requests and answers them with a canned response."""

    def __init__(self, status_code=200, json_body=None, text=None, error=None):
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.error = error
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_payload(self) -> dict:
        return json.loads(self.last_request.content)


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key):
    return rsa_private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_body(public_key_pem):
    """The key as the developer portal hands it out: base-64 body, no framing."""
    lines = [line for line in public_key_pem.strip().splitlines() if "PUBLIC KEY" not in line]
    return "".join(lines)


@pytest.fixture
def mpesa_config(public_key_body):
    return MpesaConfig(
        api_key="test-api-key-123",
        public_key=public_key_body,
        service_provider_code="171717",
        origin="developer.mpesa.vm.co.mz",
        env="sandbox",
        timeout=5,
    )


@pytest.fixture
def gateway(mpesa_config):
    """Factory: gateway(json_body=..., status_code=...) -> (client, stub)."""

    def _make(**stub_kwargs):
        stub = GatewayStub(**stub_kwargs)
        return MpesaClient(mpesa_config, transport=stub.transport), stub

    return _make


@pytest.fixture
def clean_mpesa_env(monkeypatch):
    """Remove MPESA_* variables and undo anything a test loads into os.environ."""
    for var in (
        "MPESA_API_KEY",
        "MPESA_PUBLIC_KEY",
        "MPESA_SERVICE_PROVIDER_CODE",
        "MPESA_ORIGIN",
        "MPESA_API_HOST",
        "MPESA_ENV",
        "MPESA_TIMEOUT",
    ):
        monkeypatch.setenv(var, "placeholder")
        monkeypatch.delenv(var)
    return monkeypatch
