"""spaserve: in-memory single-page-application asset server."""

__version__ = "1.0.0"
