"""Multi-network IRC relay bot forwarding chat commands and links to an HTTP backend."""

__version__ = "1.0.0"
