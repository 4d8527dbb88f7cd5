import platformdirs
import pytest
import requests

from nethost_fetch.registry.http import RegistryClient
from registry_test_utils import FakeSession

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and XDG directories at a temp tree and clear resolver env vars.
    """
    base = tmp_path_factory.mktemp("nethost-fetch")
    config_dir = base / "config"
    config_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    for name in (
        "OUT_DIR",
        "NETHOST_FETCH_OUT_DIR",
        "NETHOST_FETCH_SERVICE_INDEX",
        "NETHOST_FETCH_TIMEOUT",
        "NETHOST_FETCH_DOWNLOAD",
        "NETHOST_FETCH_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(fake_session):
    return RegistryClient(session=fake_session)
