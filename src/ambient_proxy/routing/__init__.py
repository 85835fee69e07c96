"""Ambient Proxy Routing Module.

Decides which upstream proxy a client should use based on where it
connects from.

Features:
- GeoIP lookup using MaxMind databases
- Continent-based region classification with an explicit country table
- Optional X-AppEngine-Country header override
- Static US/EU endpoint table

Usage:
    from ambient_proxy.routing import GeoIPResolver, ProxyRouter

    router = ProxyRouter(GeoIPResolver.discover("country.mmdb"))
    decision = router.route("203.0.113.1")
    print(decision.endpoint)

Requires:
    pip install geoip2>=4.8.0
"""

from ambient_proxy.routing.geo import (
    DEFAULT_GEOIP_PATH,
    UNKNOWN_COUNTRY,
    GeoIPResolver,
    GeoRecord,
)
from ambient_proxy.routing.region import (
    RegionBucket,
    classify,
    classify_country,
    continent_for_country,
    is_country_code,
)
from ambient_proxy.routing.router import COUNTRY_HEADER, ProxyRouter, RoutingDecision
from ambient_proxy.routing.selector import EU_PROXY, US_PROXY, ProxyEndpoints, select
from ambient_proxy.routing.version import AMBIENT_USER_AGENT_PREFIX, extract_version

__all__ = [
    "AMBIENT_USER_AGENT_PREFIX",
    "COUNTRY_HEADER",
    "DEFAULT_GEOIP_PATH",
    "EU_PROXY",
    "GeoIPResolver",
    "GeoRecord",
    "ProxyEndpoints",
    "ProxyRouter",
    "RegionBucket",
    "RoutingDecision",
    "UNKNOWN_COUNTRY",
    "US_PROXY",
    "classify",
    "classify_country",
    "continent_for_country",
    "extract_version",
    "is_country_code",
    "select",
]
