"""Ambient Proxy Manager HTTP server."""

from ambient_proxy.server.proxy import STATE_KEY, AppState, ProxyServer

__all__ = ["STATE_KEY", "AppState", "ProxyServer"]
