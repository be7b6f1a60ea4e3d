"""Shared fixtures: an isolated environment and a small SPA build tree."""

import pytest
from httpx import AsyncClient, ASGITransport

from spaserve.assets import load_assets
from spaserve.config import Settings
from spaserve.main import create_app

ENV_VARS = [
    "PORT",
    "ADDRESS",
    "READ_TIMEOUT_SECONDS",
    "WRITE_TIMEOUT_SECONDS",
    "IDLE_TIMEOUT_SECONDS",
    "CSP_HEADER",
    "BASE_HREF",
    "CONFIG_JSON",
    "ASSET_ROOT",
    "LOG_LEVEL",
]

INDEX_HTML = (
    b"<!doctype html><html><head>"
    b'<base href="/" />'
    b'<meta name="csp-nonce" content="{{csp-nonce}}" />'
    b"<style>body{margin:0}</style>"
    b"</head><body>"
    b'<script type="module" src="assets/app.js"></script>'
    b"</body></html>"
)
APP_JS = b'console.log("<script> is only text here");\n'
APP_CSS = b"#root { padding: 2rem; }\n"
FONT = b"wOF2\x00\x01\x00\x00"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def build_dir(tmp_path):
    root = tmp_path / "public"
    (root / "assets" / "fonts").mkdir(parents=True)
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "assets" / "app.js").write_bytes(APP_JS)
    (root / "assets" / "app.css").write_bytes(APP_CSS)
    (root / "assets" / "fonts" / "inter.woff2").write_bytes(FONT)
    return root


@pytest.fixture
async def make_client(build_dir):
    """Factory returning an AsyncClient for an app built with the given settings."""
    clients = []

    def _make(**settings_kwargs) -> AsyncClient:
        settings = Settings(_env_file=None, **settings_kwargs)
        assets = load_assets(
            build_dir,
            base_href=settings.BASE_HREF,
            config_json=settings.CONFIG_JSON,
        )
        app = create_app(settings, assets)
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(make_client):
    return make_client()
