from typing import Any, Dict, Optional
import httpx

from steam_gateway.core.config import ClientConfig
from steam_gateway.providers.api_keys.blocklist import BlocklistManager
from steam_gateway.providers.api_keys.key_selector import KeySelector
from steam_gateway.providers.api_keys.usage_tracker import UsageTracker
from steam_gateway.providers.store.interface import KeyValueStoreInterface
from .dispatcher import RequestDispatcher
from .models import RequestSpec
from .retry import RetryController


class SteamApiClient:
    """Steam Web API client sharing a key pool through the store."""

    def __init__(
        self,
        config: ClientConfig,
        store: KeyValueStoreInterface,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.store = store
        self.usage_tracker = UsageTracker(store, timezone=config.usage_timezone)
        self.blocklist = BlocklistManager(store)
        self.selector = KeySelector(
            self.blocklist, self.usage_tracker, policy=config.selection_policy
        )
        self.dispatcher = RequestDispatcher(config, self.usage_tracker, http_client)
        self.retry = RetryController(
            config, self.dispatcher, self.selector, self.blocklist
        )

    async def request(
        self,
        path: str,
        method: str = "GET",
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        data: Any = None,
        base_url: Optional[str] = None,
    ) -> Any:
        spec = RequestSpec(
            path=path,
            method=method,
            params=params or {},
            headers=headers or {},
            json_body=json,
            data=data,
            base_url=base_url,
        )
        return await self.retry.execute(spec)

    async def get(self, path: str, **options) -> Any:
        return await self.request(path, "GET", **options)

    async def post(self, path: str, **options) -> Any:
        return await self.request(path, "POST", **options)

    async def aclose(self) -> None:
        """Flush pending counter updates and close the HTTP client."""
        await self.dispatcher.aclose()

    async def __aenter__(self) -> "SteamApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
