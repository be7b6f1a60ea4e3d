"""Packaged asset loading: walks the build tree once and keeps it in memory.

The resulting table maps URL paths (``/index.html``, ``/assets/app.js``) to
their bytes and MIME type.  It is built once at startup and never mutated, so
request handlers share it without locking.
"""

import logging
import mimetypes
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple, Union

from spaserve.errors import AssetLoadError

logger = logging.getLogger(__name__)

INDEX_PATH = "/index.html"
CONFIG_PATH = "/config.json"

UNKNOWN_MIME_TYPE = "application/unknown"

# Not reliably present in the platform mimetypes tables; mimetypes also
# reports compression suffixes as an encoding rather than a type
_EXTENSION_MIME_TYPES = {
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".gz": "application/gzip",
    ".tgz": "application/gzip",
    ".bz2": "application/x-bzip2",
    ".xz": "application/x-xz",
}

AssetRoot = Union[Path, Traversable]


@dataclass(frozen=True)
class Asset:
    path: str
    content: bytes
    mime_type: str


AssetTable = Mapping[str, Asset]


def packaged_asset_root() -> Traversable:
    """Return the build tree shipped inside the package."""
    return resources.files("spaserve") / "public"


def guess_mime_type(path: str) -> str:
    """Resolve a MIME type from the last file extension of ``path``.

    ``app.js.gz`` is gzip data, not JavaScript.
    """
    suffix = Path(path).suffix.lower()
    if not suffix:
        return UNKNOWN_MIME_TYPE
    if suffix in _EXTENSION_MIME_TYPES:
        return _EXTENSION_MIME_TYPES[suffix]
    mime_type, encoding = mimetypes.guess_type("asset" + suffix, strict=False)
    if encoding is not None:
        return UNKNOWN_MIME_TYPE
    return mime_type or UNKNOWN_MIME_TYPE


def rewrite_base_href(content: bytes, base_href: str) -> bytes:
    """Point every ``<base href="/"`` at ``base_href``."""
    return content.replace(
        b'<base href="/"',
        f'<base href="{base_href}"'.encode("utf-8"),
    )


def _walk(node: AssetRoot, prefix: str = "") -> Iterator[Tuple[str, AssetRoot]]:
    for child in sorted(node.iterdir(), key=lambda c: c.name):
        key = f"{prefix}/{child.name}"
        if child.is_dir():
            # Symlinked directories are not followed
            if isinstance(child, Path) and child.is_symlink():
                continue
            yield from _walk(child, key)
        elif child.is_file():
            yield key, child


def load_assets(
    root: AssetRoot,
    base_href: str = "/",
    config_json: str = "{}",
) -> AssetTable:
    """Read every file under ``root`` into an immutable asset table.

    Adds a synthetic ``/config.json`` entry holding ``config_json`` verbatim.
    Any error while walking or reading aborts the whole load.
    """
    files: Dict[str, Asset] = {}
    try:
        for key, node in _walk(root):
            content = node.read_bytes()
            if key == INDEX_PATH:
                content = rewrite_base_href(content, base_href)
            files[key] = Asset(path=key, content=content, mime_type=guess_mime_type(key))
            logger.info(f"Loading file from packaged assets. file {key}")
    except OSError as e:
        raise AssetLoadError(f"Could not load files from {root}: {e}") from e

    files[CONFIG_PATH] = Asset(
        path=CONFIG_PATH,
        content=config_json.encode("utf-8"),
        mime_type=guess_mime_type(CONFIG_PATH),
    )
    return MappingProxyType(files)


def require_index(assets: AssetTable) -> Asset:
    """Return the index asset, or raise if the build tree had none."""
    index = assets.get(INDEX_PATH)
    if index is None:
        raise AssetLoadError(f"Could not find {INDEX_PATH.lstrip('/')}")
    return index
