"""
Shared fixtures: an in-memory stand-in for ``hvac.Client``.

FakeVaultClient mimics the subset of the hvac API the adapter uses and
records every call, so tests can assert what reached the "network".
"""
import threading
from types import SimpleNamespace

import pytest

from vault_session import ExecutionContext, VaultConfig, VaultSession


class FakeHTTPAdapter:
    """Stands in for hvac's requests adapter."""
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeAuthMethod:
    def __init__(self, client, name: str):
        self.client = client
        self.name = name

    def login(self, **kwargs):
        self.client.calls.append((f"{self.name}_login", kwargs))
        behavior = self.client.behavior
        if behavior.login_error is not None:
            raise behavior.login_error
        return behavior.login_response


class FakeVaultClient:
    """Records calls; answers from the shared ``behavior`` namespace."""

    def __init__(self, behavior, url, token=None, namespace=None, verify=True, timeout=30):
        self.behavior = behavior
        self.url = url
        self.token = token
        self.namespace = namespace
        self.verify = verify
        self.timeout = timeout
        self.calls = []
        self.adapter = FakeHTTPAdapter()
        self.auth = SimpleNamespace(
            approle=FakeAuthMethod(self, "approle"),
            kubernetes=FakeAuthMethod(self, "kubernetes"),
        )

    def _respond(self, operation: str, path: str):
        behavior = self.behavior
        if behavior.block is not None:
            behavior.block.wait(5)
        if behavior.error is not None:
            raise behavior.error
        return behavior.responses.get((operation, path))

    def read(self, path):
        self.calls.append(("read", path, self.token))
        return self._respond("read", path)

    def list(self, path):
        self.calls.append(("list", path, self.token))
        return self._respond("list", path)

    def write_data(self, path, data=None):
        self.calls.append(("write", path, data))
        return self._respond("write", path)

    def delete(self, path):
        self.calls.append(("delete", path, self.token))
        return self._respond("delete", path)


class FakeClientFactory:
    """Callable passed as ``client_factory``; keeps every client it built."""

    def __init__(self):
        self.clients = []
        self.behavior = SimpleNamespace(
            responses={},
            error=None,
            block=None,
            login_error=None,
            login_response={"auth": {"client_token": "t-123"}},
        )

    def __call__(self, **kwargs):
        client = FakeVaultClient(self.behavior, **kwargs)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeVaultClient:
        return self.clients[-1]


@pytest.fixture
def factory():
    """A fresh fake client factory."""
    return FakeClientFactory()


@pytest.fixture
def token_file(tmp_path):
    """Service-account token file with a known jwt."""
    path = tmp_path / "token"
    path.write_text("jwt-from-file\n")
    return path


@pytest.fixture
def config(tmp_path):
    """Config pointing the service-account token at a path that does not exist."""
    return VaultConfig(kubernetes_token_path=str(tmp_path / "missing-token"))


@pytest.fixture
def session(config, factory):
    """A session without execution context, not yet set up."""
    return VaultSession(config=config, client_factory=factory)


@pytest.fixture
def ready_session(session):
    """A session set up against a fake Vault server."""
    session.setup("http://vault.local:8200")
    return session


@pytest.fixture
def context():
    ctx = ExecutionContext()
    yield ctx
    ctx.close()


@pytest.fixture
def release():
    """Event that unblocks fake backend calls; set on teardown."""
    event = threading.Event()
    yield event
    event.set()
