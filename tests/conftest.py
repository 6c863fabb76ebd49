import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config, ProxySettings, TokenSettings

GEMINI_KEY = "gemini-server-secret-0123456789"
APP_ID = "cli_app_id_42"
APP_SECRET = "app-secret-do-not-leak-987654"


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self):
        self.proxied = []
        self.responses = []
        self.errors = []
        self.infos = []

    def log_proxy(self, method, path, target_url):
        self.proxied.append((method, path, target_url))

    def log_response(self, route, status, elapsed_ms, target_url):
        self.responses.append((route, status, elapsed_ms, target_url))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))

    def log_info(self, tag, message):
        self.infos.append((tag, message))

    def all_text(self) -> str:
        records = self.proxied + self.responses + self.errors + self.infos
        return " ".join(str(r) for r in records)


class Upstream:
    """Scripted upstream behind an httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.reply = lambda request: httpx.Response(200, json={"ok": True})

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        return self.reply(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_config(tmp_path, *, gemini_key=GEMINI_KEY, app_id=APP_ID, app_secret=APP_SECRET, **proxy):
    return Config(
        proxy=ProxySettings(static_root=str(tmp_path), **proxy),
        token=TokenSettings(app_id=app_id, app_secret=app_secret),
        secrets={"gemini_api_key": gemini_key},
    )


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def make_client(tmp_path, logger, upstream):
    """Build a TestClient for a given Config, wired to the scripted upstream."""
    clients = []

    def factory(config=None):
        config = config or make_config(tmp_path)
        app = create_app(config, logger, transport=httpx.MockTransport(upstream.handler))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
