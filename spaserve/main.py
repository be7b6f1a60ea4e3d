"""FastAPI application factory and command-line entry point."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI

from spaserve import __version__
from spaserve.assets import AssetTable, load_assets, packaged_asset_root
from spaserve.config import Settings, load_settings
from spaserve.errors import SpaServeError
from spaserve.handler import AssetHandler
from spaserve.middleware import TimeoutMiddleware

logger = logging.getLogger(__name__)


def build_assets(settings: Settings) -> AssetTable:
    """Load the asset table from ASSET_ROOT, or from the packaged build."""
    root = Path(settings.ASSET_ROOT) if settings.ASSET_ROOT else packaged_asset_root()
    return load_assets(root, base_href=settings.BASE_HREF, config_json=settings.CONFIG_JSON)


def create_app(
    settings: Optional[Settings] = None,
    assets: Optional[AssetTable] = None,
) -> FastAPI:
    """Build the application around an already-loaded asset table.

    Raises AssetLoadError when the table has no index document.
    """
    settings = settings or load_settings()
    if assets is None:
        assets = build_assets(settings)
    handler = AssetHandler(assets, csp_header=settings.CSP_HEADER)

    app = FastAPI(
        title="spaserve",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.assets = assets
    app.state.settings = settings

    # Any path: exact asset hit, otherwise the app shell
    # An ASGI endpoint leaves the route open to every method
    app.add_route("/{full_path:path}", handler, include_in_schema=False)

    app.add_middleware(
        TimeoutMiddleware,
        read_timeout=settings.READ_TIMEOUT_SECONDS,
        write_timeout=settings.WRITE_TIMEOUT_SECONDS,
    )
    return app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve a prebuilt single-page application")
    parser.add_argument("--host", default=None, help="Address to bind (overrides ADDRESS)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (overrides PORT)")
    parser.add_argument("--asset-root", default=None, help="Directory to serve (overrides ASSET_ROOT)")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    overrides = {}
    if args.host:
        overrides["ADDRESS"] = args.host
    if args.port is not None:
        overrides["PORT"] = args.port
    if args.asset_root:
        overrides["ASSET_ROOT"] = args.asset_root

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(**overrides)
        logging.getLogger().setLevel(settings.LOG_LEVEL)
        app = create_app(settings)
    except SpaServeError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Starting server on Addr: {settings.bind_address}")
    uvicorn.run(
        app,
        host=settings.ADDRESS,
        port=settings.PORT,
        timeout_keep_alive=settings.IDLE_TIMEOUT_SECONDS,
        log_config=None,
    )
    logger.info("Stopping Server")


if __name__ == "__main__":
    main()
