"""Request handling: exact-path lookup, SPA fallback, caching and CSP nonces."""

import base64
import logging
import secrets

from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from spaserve.assets import CONFIG_PATH, INDEX_PATH, AssetTable, require_index

logger = logging.getLogger(__name__)

NONCE_SIZE = 32

# Encoded in place of random bytes when the OS random source fails
FALLBACK_NONCE_SEED = b"RaND9mN0nC3"

NONCE_PLACEHOLDER = b"{{csp-nonce}}"

CSP_DISABLED = "false"

DEFAULT_CSP_TEMPLATE = (
    "default-src 'self'; "
    "script-src 'self' 'strict-dynamic' 'nonce-{nonce}'; "
    "style-src 'self' 'nonce-{nonce}'; "
    "img-src 'self' data:; "
    "font-src 'self' data:; "
)

SHORT_CACHE = "public, max-age: 60"
IMMUTABLE_CACHE = "public, max-age: 604800, immutable"


# ── Nonce & CSP helpers ──────────────────────────────────────────────────────

def generate_nonce() -> str:
    """Return a fresh base64-encoded nonce for one response."""
    try:
        raw = secrets.token_bytes(NONCE_SIZE)
    except (OSError, NotImplementedError) as e:
        logger.error(f"Could not generate nonce for CSP header. err: {e}")
        raw = FALLBACK_NONCE_SEED
    return base64.b64encode(raw).decode("ascii")


def resolve_csp_template(csp_header: str) -> str:
    return csp_header or DEFAULT_CSP_TEMPLATE


def render_csp(template: str, nonce: str) -> str:
    """Substitute ``nonce`` into a CSP template.

    Besides ``{nonce}``, the printf-style ``%[1]s`` and ``%s`` placeholders are
    accepted so existing ``CSP_HEADER`` values keep working.
    """
    return (
        template.replace("{nonce}", nonce)
        .replace("%[1]s", nonce)
        .replace("%s", nonce)
    )


def inject_nonce(content: bytes, nonce: str) -> bytes:
    """Tag every ``<script``/``<style`` opening and fill ``{{csp-nonce}}``.

    Plain substring replacement: assumes the tags never appear inside
    attribute values.
    """
    value = nonce.encode("ascii")
    attr = b' nonce="' + value + b'"'
    content = content.replace(b"<script", b"<script" + attr)
    content = content.replace(b"<style", b"<style" + attr)
    return content.replace(NONCE_PLACEHOLDER, value)


# ── Response ─────────────────────────────────────────────────────────────────

class AssetResponse(Response):
    """Response whose write failures are logged instead of propagated."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except OSError as e:
            logger.warning(f"Could not send file to client. file: {scope.get('path')} err: {e}")


class AssetHandler:
    """ASGI app serving an immutable asset table, falling back to the index document."""

    def __init__(self, assets: AssetTable, csp_header: str = ""):
        self.assets = assets
        self.index = require_index(assets)
        self.csp_template = resolve_csp_template(csp_header)

    def build_response(self, path: str) -> AssetResponse:
        asset = self.assets.get(path)
        fallback = asset is None
        if fallback:
            asset = self.index

        content = asset.content
        headers = {"Content-Type": asset.mime_type}

        if fallback or path == INDEX_PATH:
            nonce = generate_nonce()
            if self.csp_template != CSP_DISABLED:
                content = inject_nonce(content, nonce)
                headers["Content-Security-Policy"] = render_csp(self.csp_template, nonce)
            headers["Cache-Control"] = SHORT_CACHE
        elif path == CONFIG_PATH:
            # refreshed every minute
            headers["Cache-Control"] = SHORT_CACHE
        else:
            headers["Cache-Control"] = IMMUTABLE_CACHE

        headers["Content-Length"] = str(len(content))
        return AssetResponse(content=content, status_code=200, headers=headers)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Every method gets the same answer; the decoded path is matched as is
        response = self.build_response(scope["path"])
        await response(scope, receive, send)
