"""HTTP front end of the proxy manager.

Serves the routing decision on /proxy, the counters on /metrics and liveness
on /health and /_ah/health.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog
from aiohttp import hdrs, web

from ambient_proxy.core.config import ServerConfig
from ambient_proxy.observability.metrics import MetricsEncodingError, ProxyMetrics
from ambient_proxy.routing.geo import GeoIPResolver
from ambient_proxy.routing.router import COUNTRY_HEADER, ProxyRouter
from ambient_proxy.routing.version import extract_version

logger = structlog.get_logger()

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass
class AppState:
    """Process-wide state shared by every request.

    The router (and its resolver) is read-only after construction; the
    metrics are internally synchronized.
    """

    router: ProxyRouter
    metrics: ProxyMetrics = field(default_factory=ProxyMetrics)

    @classmethod
    def from_config(cls, config: ServerConfig) -> AppState:
        resolver = GeoIPResolver.discover(config.geoip_path)
        router = ProxyRouter(
            resolver,
            config.endpoints,
            trust_country_header=config.trust_country_header,
        )
        return cls(router=router)

    def close(self) -> None:
        if self.router.resolver is not None:
            self.router.resolver.close()


STATE_KEY = web.AppKey("state", AppState)


def _route_name(request: web.Request) -> str:
    resource = request.match_info.route.resource
    if resource is None:
        return "unmatched"
    return resource.canonical


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Allow cross-origin GETs from any origin."""
    if request.method == hdrs.METH_OPTIONS:
        response: web.StreamResponse = web.Response(status=204)
    else:
        try:
            response = await handler(request)
        except web.HTTPException as e:
            _add_cors_headers(e.headers)
            raise
    _add_cors_headers(response.headers)
    return response


def _add_cors_headers(headers) -> None:
    headers[hdrs.ACCESS_CONTROL_ALLOW_ORIGIN] = "*"
    headers[hdrs.ACCESS_CONTROL_ALLOW_METHODS] = hdrs.METH_GET
    headers[hdrs.ACCESS_CONTROL_ALLOW_HEADERS] = "*"


@web.middleware
async def accounting_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Count and time every request."""
    start = time.perf_counter()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    finally:
        duration = time.perf_counter() - start
        route = _route_name(request)
        request.app[STATE_KEY].metrics.record_http_request(
            request.method, route, status, duration
        )
        logger.debug(
            "HTTP request",
            method=request.method,
            path=request.path,
            status=status,
            duration_ms=round(duration * 1000, 2),
        )


class ProxyServer:
    """aiohttp server exposing the routing pipeline."""

    def __init__(self, config: ServerConfig, state: AppState | None = None) -> None:
        self.config = config
        self.state = state or AppState.from_config(config)
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        """Create the aiohttp application with routes and middleware."""
        app = web.Application(middlewares=[cors_middleware, accounting_middleware])
        app[STATE_KEY] = self.state
        app.router.add_get("/_ah/health", self._handle_health_check)
        app.router.add_get("/health", self._handle_health_check)
        app.router.add_get("/proxy", self._handle_proxy)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self) -> None:
        """Start serving on the configured listen address."""
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()

        host, port = self.config.bind
        site = web.TCPSite(self._runner, host, port)
        await site.start()

        logger.info(
            "Proxy manager started",
            host=host,
            port=port,
            geoip_enabled=self.state.router.geoip_enabled,
            trust_country_header=self.state.router.trust_country_header,
            endpoints=self.state.router.endpoints.to_dict(),
        )

    async def stop(self) -> None:
        """Stop the server and release the GeoIP database."""
        logger.info("Stopping proxy manager...")
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        self.state.close()
        logger.info("Proxy manager stopped")

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        return web.Response(text="ok")

    async def _handle_proxy(self, request: web.Request) -> web.Response:
        """Hand the client the proxy address for its region."""
        state = request.app[STATE_KEY]
        user_agent = request.headers.get(hdrs.USER_AGENT, "")

        decision = state.router.route(request.remote, request.headers.get(COUNTRY_HEADER))
        ambient_version = extract_version(user_agent)

        logger.info(
            "Proxy request",
            ip=request.remote,
            user_agent=user_agent,
            ambient_version=ambient_version,
            **decision.to_dict(),
        )

        state.metrics.record_proxy_request(decision.country, ambient_version)

        return web.Response(text=decision.endpoint)

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        """Prometheus metrics endpoint in OpenMetrics format."""
        metrics = request.app[STATE_KEY].metrics
        try:
            body = metrics.render()
        except MetricsEncodingError as e:
            logger.error("Failed to encode metrics", error=str(e))
            return web.Response(status=500, text="Failed to encode metrics")

        return web.Response(body=body, headers={hdrs.CONTENT_TYPE: metrics.content_type})
