"""Shared fixtures for the proxy manager tests."""

from __future__ import annotations

from ipaddress import ip_address
from types import SimpleNamespace

import pytest
import structlog
from geoip2.errors import AddressNotFoundError

from ambient_proxy.core.config import ServerConfig
from ambient_proxy.observability.metrics import ProxyMetrics
from ambient_proxy.routing.geo import GeoIPResolver
from ambient_proxy.routing.router import ProxyRouter
from ambient_proxy.server.proxy import AppState, ProxyServer


class FakeReader:
    """In-memory stand-in for geoip2.database.Reader."""

    def __init__(self, records: dict[str, tuple[str | None, str | None]], database_type: str = "GeoLite2-Country"):
        self.records = records
        self.database_type = database_type
        self.closed = False
        self.calls: list[tuple[str, str]] = []

    def metadata(self):
        return SimpleNamespace(database_type=self.database_type)

    def _lookup(self, ip: str):
        ip_address(ip)  # raises ValueError like the real reader
        if ip not in self.records:
            raise AddressNotFoundError(f"The address {ip} is not in the database.")
        continent, country = self.records[ip]
        return SimpleNamespace(
            continent=SimpleNamespace(code=continent),
            country=SimpleNamespace(iso_code=country),
        )

    def country(self, ip: str):
        self.calls.append(("country", ip))
        return self._lookup(ip)

    def city(self, ip: str):
        self.calls.append(("city", ip))
        return self._lookup(ip)

    def close(self) -> None:
        self.closed = True


GEO_RECORDS = {
    "127.0.0.1": ("NA", "US"),
    "8.8.8.8": ("NA", "US"),
    "200.160.2.3": ("SA", "BR"),
    "81.2.69.142": ("EU", "DE"),
    "1.1.1.1": ("OC", "AU"),
    "2001:db8::1": ("EU", "FR"),
}


@pytest.fixture
def reader_factory():
    return FakeReader


@pytest.fixture
def fake_reader() -> FakeReader:
    return FakeReader(dict(GEO_RECORDS))


@pytest.fixture
def resolver(fake_reader: FakeReader) -> GeoIPResolver:
    return GeoIPResolver(fake_reader, path="test.mmdb")


@pytest.fixture
def make_server():
    """Build a ProxyServer around an explicit resolver and reader records."""

    def factory(
        records: dict[str, tuple[str | None, str | None]] | None = None,
        *,
        geoip: bool = True,
        trust_country_header: bool = False,
    ) -> ProxyServer:
        resolver = None
        if geoip:
            resolver = GeoIPResolver(FakeReader(dict(GEO_RECORDS if records is None else records)))
        router = ProxyRouter(resolver, trust_country_header=trust_country_header)
        state = AppState(router=router, metrics=ProxyMetrics())
        return ProxyServer(ServerConfig(), state=state)

    return factory


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
