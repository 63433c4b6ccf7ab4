import asyncio
import logging
import time
from typing import Any, Coroutine, Dict, Optional, Set
import httpx

from steam_gateway.core.config import ClientConfig
from steam_gateway.core.constants import KEY_PARAM, RATE_LIMITED_STATUS, STEAM_API_URL
from steam_gateway.core.exceptions import RateLimitedError, TransportError
from steam_gateway.core.telemetry import (
    get_logger,
    log_span_event,
    mask_key,
    trace_span,
)
from steam_gateway.providers.api_keys.usage_tracker import UsageTracker
from .models import RequestSpec

logger = get_logger(__name__)


def _is_absolute(path: str) -> bool:
    return path.startswith(("http://", "https://"))


class RequestDispatcher:
    """Sends a single attempt of a Steam API request."""

    def __init__(
        self,
        config: ClientConfig,
        usage_tracker: UsageTracker,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.usage_tracker = usage_tracker
        self._owns_client = http_client is None
        self._client = http_client or self._build_client(config)
        # Strong references so pending counter updates are not garbage collected
        self._background: Set[asyncio.Task] = set()

    @staticmethod
    def _build_client(config: ClientConfig) -> httpx.AsyncClient:
        mounts = {
            scheme: httpx.AsyncHTTPTransport(proxy=proxy)
            for scheme, proxy in config.proxy_mounts.items()
        }
        return httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout),
            mounts=mounts or None,
        )

    def resolve_base_url(self, spec: RequestSpec) -> str:
        return (spec.base_url or self.config.steam_base_url).rstrip("/")

    def needs_key(self, spec: RequestSpec) -> bool:
        """Whether the call must be authenticated with a pool key."""
        if spec.has_access_token:
            return False
        if _is_absolute(spec.path):
            # Only the Steam host or its configured proxy may receive a key
            return spec.path.startswith(
                (f"{self.config.steam_base_url}/", f"{STEAM_API_URL}/")
            )
        return self.resolve_base_url(spec) == self.config.steam_base_url

    def build_url(self, spec: RequestSpec) -> str:
        if _is_absolute(spec.path):
            return spec.path
        return f"{self.resolve_base_url(spec)}/{spec.path.lstrip('/')}"

    def build_params(self, spec: RequestSpec, key: Optional[str]) -> Dict[str, Any]:
        params = {
            "l": self.config.language,
            "cc": self.config.country,
            "language": self.config.language,
            **spec.params,
        }
        if key:
            params[KEY_PARAM] = key
        return params

    @trace_span
    async def dispatch(self, spec: RequestSpec, key: Optional[str] = None) -> Any:
        """
        Send spec once, authenticated with key when given.

        Returns:
            The decoded body: parsed JSON, text, or None when empty

        Raises:
            RateLimitedError: The API answered with its throttling status
            TransportError: Network failure, timeout or other non-2xx status
        """
        url = self.build_url(spec)
        event = {
            "path": spec.path,
            "method": spec.method,
            "key": mask_key(key) if key else "",
        }
        self._spawn(self.usage_tracker.record_request(spec.path))
        log_span_event(logger, f"Requesting Steam API: {spec.path}", event)

        start = time.monotonic()
        try:
            response = await self._client.request(
                spec.method,
                url,
                params=self.build_params(spec, key),
                headers=spec.headers or None,
                json=spec.json_body,
                data=spec.data,
            )
        except httpx.HTTPError as e:
            event["elapsed_ms"] = self._elapsed_ms(start)
            log_span_event(
                logger,
                f"Steam API transport error: {spec.path}: {e}",
                event,
                logging.ERROR,
            )
            raise TransportError(f"Request to {spec.path} failed: {e}", url=url) from e

        event["elapsed_ms"] = self._elapsed_ms(start)
        event["status_code"] = response.status_code

        if response.status_code == RATE_LIMITED_STATUS:
            log_span_event(
                logger, f"Steam API rate limited: {spec.path}", event, logging.WARNING
            )
            raise RateLimitedError(
                f"Request to {spec.path} was rate limited",
                url=url,
                status_code=response.status_code,
            )

        if not response.is_success:
            log_span_event(
                logger,
                f"Steam API request failed: {spec.path}, status {response.status_code}",
                event,
                logging.ERROR,
            )
            raise TransportError(
                f"Request to {spec.path} failed with status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        log_span_event(
            logger,
            f"Steam API request succeeded: {spec.path}, took {event['elapsed_ms']}ms",
            event,
        )
        if key:
            self._spawn(self.usage_tracker.record_use(key))
        return self._decode(response)

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        if "json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        """Run a best-effort store update without holding up the request."""
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def wait_for_background(self) -> None:
        """Wait for pending counter updates, including ones spawned meanwhile."""
        while self._background:
            results = await asyncio.gather(
                *list(self._background), return_exceptions=True
            )
            for result in results:
                if isinstance(result, Exception):
                    logger.warning(f"Background counter update failed: {result}")

    async def aclose(self) -> None:
        await self.wait_for_background()
        if self._owns_client:
            await self._client.aclose()
