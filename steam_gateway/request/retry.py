from dataclasses import dataclass
from typing import Any, Optional, Tuple

from steam_gateway.core.config import ClientConfig
from steam_gateway.core.exceptions import RateLimitedError
from steam_gateway.core.telemetry import get_logger, mask_key
from steam_gateway.providers.api_keys.blocklist import BlocklistManager
from steam_gateway.providers.api_keys.key_selector import KeySelector
from .dispatcher import RequestDispatcher
from .models import RequestSpec

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryState:
    """Progress of one logical request through key rotation."""

    attempt: int
    candidates: Tuple[str, ...]

    def narrowed(self, key: str) -> "RetryState":
        """State for the next attempt, with key no longer a candidate."""
        return RetryState(
            attempt=self.attempt + 1,
            candidates=tuple(k for k in self.candidates if k != key),
        )


class RetryController:
    """Rotates API keys when the Steam API rate limits a request."""

    def __init__(
        self,
        config: ClientConfig,
        dispatcher: RequestDispatcher,
        selector: KeySelector,
        blocklist: BlocklistManager,
    ):
        self.pool = config.api_keys
        self.max_retry = config.max_retry
        self.dispatcher = dispatcher
        self.selector = selector
        self.blocklist = blocklist

    def can_retry(self, state: RetryState, key: Optional[str]) -> bool:
        return (
            key is not None
            and len(state.candidates) > 1
            and state.attempt < self.max_retry
        )

    async def execute(self, spec: RequestSpec) -> Any:
        """
        Run spec, switching to another key after each rate limit rejection.

        Raises:
            RateLimitedError: Rate limited with no retry left
            TransportError: Any other request failure, never retried
            StorageError: The rejected key could not be quarantined
        """
        state = RetryState(attempt=0, candidates=self.pool)
        needs_key = self.dispatcher.needs_key(spec)

        while True:
            key = None
            if needs_key:
                key = (await self.selector.select(state.candidates)).key

            try:
                return await self.dispatcher.dispatch(spec, key)
            except RateLimitedError as e:
                if not self.can_retry(state, key):
                    raise

                await self.blocklist.quarantine(key)
                state = state.narrowed(key)
                logger.error(
                    f"Steam API request failed: {spec.path}, status {e.status_code}, "
                    f"replacing key {mask_key(key)}, retry {state.attempt}/{self.max_retry}"
                )
