"""Ambient Proxy Manager - hands clients the proxy closest to them."""

__version__ = "0.1.0"
