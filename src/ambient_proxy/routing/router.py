"""Geo-aware proxy routing.

Combines GeoIP resolution, region classification and endpoint selection into
a single decision per client. The decision is total: when geography is
unknown the client is sent to the default region.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from ambient_proxy.routing.geo import UNKNOWN_COUNTRY, GeoIPResolver, GeoRecord
from ambient_proxy.routing.region import (
    RegionBucket,
    classify,
    classify_country,
    continent_for_country,
    is_country_code,
)
from ambient_proxy.routing.selector import DEFAULT_ENDPOINTS, ProxyEndpoints

logger = structlog.get_logger()

COUNTRY_HEADER = "X-AppEngine-Country"


@dataclass(frozen=True)
class RoutingDecision:
    """Outcome of routing one client."""

    bucket: RegionBucket
    """Region serving the client."""

    endpoint: str
    """Proxy address handed back to the client."""

    continent: str | None = None
    """Continent code used for the decision, if known."""

    country: str = UNKNOWN_COUNTRY
    """Country code, or ``ZZ`` when unknown."""

    from_header: bool = False
    """Whether the country came from the country header rather than GeoIP."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.bucket.name,
            "endpoint": self.endpoint,
            "continent": self.continent,
            "country": self.country,
            "from_header": self.from_header,
        }


class ProxyRouter:
    """Picks the proxy endpoint for a client address."""

    def __init__(
        self,
        resolver: GeoIPResolver | None = None,
        endpoints: ProxyEndpoints = DEFAULT_ENDPOINTS,
        *,
        trust_country_header: bool = False,
    ) -> None:
        """Initialize the router.

        Args:
            resolver: GeoIP resolver, or None to run in unknown-geo mode.
            endpoints: Proxy address for each region bucket.
            trust_country_header: Let a well-formed country header replace
                the GeoIP lookup.
        """
        self.resolver = resolver
        self.endpoints = endpoints
        self.trust_country_header = trust_country_header

    @property
    def geoip_enabled(self) -> bool:
        return self.resolver is not None

    def resolve(self, ip: str | None) -> GeoRecord:
        """Look up ``ip``, degrading to an empty record."""
        if self.resolver is None or not ip:
            return GeoRecord()
        return self.resolver.lookup_continent_and_country(ip)

    def route(self, ip: str | None, country_header: str | None = None) -> RoutingDecision:
        """Route a client.

        Args:
            ip: Client peer address.
            country_header: Raw ``X-AppEngine-Country`` value, if any.

        Returns:
            RoutingDecision naming the bucket and endpoint.
        """
        if self.trust_country_header and is_country_code(country_header):
            country = country_header.upper()
            bucket = classify_country(country)
            return RoutingDecision(
                bucket=bucket,
                endpoint=self.endpoints.select(bucket),
                continent=continent_for_country(country),
                country=country,
                from_header=True,
            )

        record = self.resolve(ip)
        if self.resolver is not None and not record.is_known:
            logger.debug("No GeoIP record for client", ip=ip)

        bucket = classify(record.continent)
        return RoutingDecision(
            bucket=bucket,
            endpoint=self.endpoints.select(bucket),
            continent=record.continent,
            country=record.country or UNKNOWN_COUNTRY,
        )
