"""Core."""

from .config import ServerConfig, flatten_config, load_config_from_file, parse_bind

__all__ = [
    "ServerConfig",
    "flatten_config",
    "load_config_from_file",
    "parse_bind",
]
