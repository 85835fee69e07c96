"""Upstream proxy endpoint table."""

from __future__ import annotations

from dataclasses import dataclass

from ambient_proxy.routing.region import RegionBucket

US_PROXY = "proxy-us.ambient.run:7000"
EU_PROXY = "proxy-eu.ambient.run:7000"


@dataclass(frozen=True)
class ProxyEndpoints:
    """Static address of the proxy serving each region bucket."""

    us: str = US_PROXY
    eu: str = EU_PROXY

    def select(self, bucket: RegionBucket) -> str:
        if bucket is RegionBucket.US:
            return self.us
        return self.eu

    def to_dict(self) -> dict[str, str]:
        return {RegionBucket.US.name: self.us, RegionBucket.EU.name: self.eu}


DEFAULT_ENDPOINTS = ProxyEndpoints()


def select(bucket: RegionBucket) -> str:
    """Address of the default proxy for ``bucket``."""
    return DEFAULT_ENDPOINTS.select(bucket)
