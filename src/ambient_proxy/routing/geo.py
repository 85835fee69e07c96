"""GeoIP resolution backed by a MaxMind database.

The resolver wraps a read-only, memory-mapped GeoIP2/GeoLite2 database and
maps an IP address to its continent and country codes. Failure never leaves
this module: a missing or corrupt database disables the resolver at startup,
and a failed lookup yields an empty GeoRecord.

Usage:
    from ambient_proxy.routing.geo import GeoIPResolver

    resolver = GeoIPResolver.discover("country.mmdb")
    if resolver is not None:
        record = resolver.lookup_continent_and_country("203.0.113.1")
        print(record.continent, record.country)

Database download:
    MaxMind GeoLite2 databases are free but require registration:
    https://dev.maxmind.com/geoip/geoip2/geolite2/
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import geoip2.database
import structlog
from geoip2.errors import GeoIP2Error
from maxminddb import InvalidDatabaseError

logger = structlog.get_logger()

DEFAULT_GEOIP_PATH = "country.mmdb"

UNKNOWN_COUNTRY = "ZZ"


@dataclass(frozen=True)
class GeoRecord:
    """Continent and country codes resolved for a single address."""

    continent: str | None = None
    """Continent code (AF, AN, AS, EU, NA, OC, SA)."""

    country: str | None = None
    """ISO 3166-1 alpha-2 country code (e.g., 'US', 'DE')."""

    @property
    def is_known(self) -> bool:
        return self.country is not None or self.continent is not None


class GeoIPResolver:
    """Read-only GeoIP lookups.

    Holds no per-request state and is never mutated after construction, so a
    single instance is shared by all concurrently handled requests.
    """

    def __init__(self, reader: Any, path: str | None = None) -> None:
        """Wrap an open database reader.

        Args:
            reader: A ``geoip2.database.Reader`` or an object exposing the
                same ``country``/``city``/``metadata`` methods.
            path: Path the database was loaded from, for diagnostics.
        """
        self._reader = reader
        self._path = path
        self._database_type = self._detect_database_type(reader)

    @classmethod
    def open(cls, path: str | Path) -> GeoIPResolver:
        """Open a MaxMind database file.

        Raises:
            FileNotFoundError: If the database file doesn't exist.
            InvalidDatabaseError: If the file is not a valid MaxMind database.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Database not found: {path}")

        reader = geoip2.database.Reader(str(path))
        return cls(reader, path=str(path))

    @classmethod
    def discover(cls, path: str | Path = DEFAULT_GEOIP_PATH) -> GeoIPResolver | None:
        """Open the database at ``path`` if it is there and usable.

        A missing file is logged as a warning and an unreadable one as an
        error; both return None so the service starts in unknown-geo mode.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("GeoIP database not found", path=str(path))
            return None

        try:
            resolver = cls.open(path)
        except (OSError, ValueError, InvalidDatabaseError) as e:
            logger.error("Failed to open GeoIP database", path=str(path), error=str(e))
            return None

        logger.info(
            "GeoIP database loaded",
            path=str(path),
            database_type=resolver.database_type,
        )
        return resolver

    @staticmethod
    def _detect_database_type(reader: Any) -> str | None:
        try:
            return reader.metadata().database_type
        except (AttributeError, InvalidDatabaseError):
            return None

    @property
    def database_type(self) -> str | None:
        return self._database_type

    @property
    def path(self) -> str | None:
        return self._path

    def lookup_continent_and_country(self, ip: str) -> GeoRecord:
        """Look up the continent and country codes for an IP address.

        Args:
            ip: IPv4 or IPv6 address string.

        Returns:
            GeoRecord with whatever codes the database holds; an empty
            record when the address is malformed or not in the database.
        """
        if self._reader is None:
            return GeoRecord()

        try:
            # City databases reject country() queries
            if "City" in (self._database_type or ""):
                response = self._reader.city(ip)
            else:
                response = self._reader.country(ip)
        except (GeoIP2Error, InvalidDatabaseError, ValueError, TypeError) as e:
            logger.debug("GeoIP lookup failed", ip=ip, error=str(e))
            return GeoRecord()

        continent = getattr(response.continent, "code", None)
        country = getattr(response.country, "iso_code", None)
        return GeoRecord(continent=continent, country=country)

    def close(self) -> None:
        """Release the underlying database."""
        if self._reader is not None:
            self._reader.close()
            self._reader = None
