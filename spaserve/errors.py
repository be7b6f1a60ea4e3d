"""Exceptions raised while starting the asset server."""


class SpaServeError(Exception):
    """Base class for startup failures."""


class AssetLoadError(SpaServeError):
    """The packaged asset tree could not be loaded, or has no index document."""


class ConfigError(SpaServeError):
    """An environment variable held a value that could not be parsed."""
