"""HTTP gateway: rate-limited pass-through to the AlAdhan API."""

import time
from datetime import datetime
from functools import partial
from typing import Any, Awaitable, Callable

from aiohttp import web
from loguru import logger

from soluna.config.schema import Config
from soluna.gateway.landing import LANDING_PAGE_HTML
from soluna.gateway.middleware.rate_limit import RateLimiter, create_rate_limit_middleware
from soluna.providers import aladhan
from soluna.providers.types import CALCULATION_METHODS, DEFAULT_METHOD, QueryParams

SolunaFetcher = Callable[[QueryParams], Awaitable[dict[str, Any]]]

DEFAULT_ADDRESS = "London"


def today_date() -> str:
    """Today's date in DD-MM-YYYY format."""
    return datetime.now().strftime("%d-%m-%Y")


class GatewayServer:
    def __init__(
        self,
        config: Config | None = None,
        limiter: RateLimiter | None = None,
        fetch_soluna: SolunaFetcher | None = None,
    ):
        self.config = config or Config()
        self.start_time = time.time()
        if limiter is None and self.config.rate_limit.enabled:
            limiter = RateLimiter(self.config.rate_limit)
        self.limiter = limiter
        self.fetch_soluna = fetch_soluna or partial(
            aladhan.get_soluna_data,
            base_urls=self.config.upstream.base_urls,
            timeout=self.config.upstream.timeout_seconds,
        )

        middlewares = []
        if self.limiter is not None:
            middlewares.append(create_rate_limit_middleware(self.limiter))
        self.app = web.Application(middlewares=middlewares)
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_get("/", self.handle_root)
        self.app.router.add_get(r"/api/{date:\d{2}-\d{2}-\d{4}}", self.handle_api)
        self.app.router.add_route("OPTIONS", "/{tail:.*}", self.handle_options)
        self.app.on_startup.append(self._on_startup)
        self.app.on_cleanup.append(self._on_cleanup)

    async def _on_startup(self, _: web.Application) -> None:
        if self.limiter is not None:
            self.limiter.start_cleanup()

    async def _on_cleanup(self, _: web.Application) -> None:
        if self.limiter is not None:
            self.limiter.stop_cleanup()

    def _json(self, body: dict[str, Any], status: int = 200) -> web.Response:
        return web.json_response(
            body,
            status=status,
            headers={
                "Access-Control-Allow-Methods": "GET",
                "Access-Control-Allow-Origin": self.config.gateway.cors_allow_origin,
                "Cache-Control": "no-cache",
            },
        )

    async def handle_health(self, request: web.Request) -> web.Response:
        return self._json({
            "ok": True,
            "uptimeSec": time.time() - self.start_time,
            "rateLimit": self.limiter.status() if self.limiter is not None else None,
        })

    async def handle_options(self, request: web.Request) -> web.Response:
        return web.Response(
            status=204,
            headers={
                "Access-Control-Allow-Methods": "GET",
                "Access-Control-Allow-Origin": self.config.gateway.cors_allow_origin,
            },
        )

    async def handle_root(self, request: web.Request) -> web.Response:
        """Landing page, or today's timings when an address is given."""
        if request.query.get("methods") == "true":
            return self._json({"methods": aladhan.get_methods()})
        if "address" not in request.query:
            return web.Response(
                text=LANDING_PAGE_HTML,
                content_type="text/html",
                headers={"Cache-Control": "no-cache"},
            )
        return await self._timings(request, today_date())

    async def handle_api(self, request: web.Request) -> web.Response:
        """Timings for /api/{DD-MM-YYYY}."""
        if request.query.get("methods") == "true":
            return self._json({"methods": aladhan.get_methods()})
        return await self._timings(request, request.match_info["date"])

    async def _timings(self, request: web.Request, date: str) -> web.Response:
        address = request.query.get("address", DEFAULT_ADDRESS).strip()
        if not address:
            return self._json({"status": 400, "error": "Missing required parameter: address"}, status=400)

        method_param = request.query.get("method", str(DEFAULT_METHOD))
        try:
            method = int(method_param)
        except ValueError:
            method = None
        if method not in CALCULATION_METHODS:
            valid = ", ".join(str(m) for m in CALCULATION_METHODS)
            return self._json(
                {"status": 400, "error": f"Invalid method: {method_param}. Valid methods are: {valid}"},
                status=400,
            )

        try:
            data = await self.fetch_soluna(QueryParams(address=address, date=date, method=method))
        except aladhan.UpstreamError as e:
            logger.exception(f"Upstream lookup failed for {address!r} on {date}")
            return self._json({"status": 503, "error": str(e)}, status=503)

        return self._json(data)

    async def start(self, host: str | None = None, port: int | None = None) -> web.AppRunner:
        """Start the gateway server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, host or self.config.gateway.host, port or self.config.gateway.port)
        await site.start()
        logger.info(f"Gateway listening on {host or self.config.gateway.host}:{port or self.config.gateway.port}")
        return runner
