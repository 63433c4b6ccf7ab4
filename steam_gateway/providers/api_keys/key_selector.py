from dataclasses import dataclass
from typing import Collection, Mapping, Sequence, Tuple

from steam_gateway.core.constants import KeySelectionPolicy
from steam_gateway.core.exceptions import ConfigurationError
from steam_gateway.core.telemetry import get_logger, mask_key
from .blocklist import BlocklistManager
from .usage_tracker import UsageTracker

logger = get_logger(__name__)


@dataclass(frozen=True)
class KeySelection:
    key: str
    available: Tuple[str, ...]  # candidates left after blocklist filtering


def select_key(
    candidates: Sequence[str],
    blocked: Collection[str],
    usage: Mapping[str, int],
    policy: KeySelectionPolicy = KeySelectionPolicy.LEAST_USED,
) -> KeySelection:
    """
    Choose the key for the next attempt.

    Blocked keys are skipped unless every candidate is blocked, in which case
    the first candidate is used anyway. Among the rest, LEAST_USED picks the
    smallest count today (missing counts are 0, ties go to the earlier key);
    FIRST_UNUSED picks the first key without usage today, else the first key.

    Args:
        candidates: Keys still allowed for this request, in configured order
        blocked: Keys currently quarantined
        usage: Today's successful-request count per key

    Returns:
        The chosen key and the non-blocked candidates
    """
    if not candidates:
        raise ConfigurationError("No Steam API keys configured")

    if len(candidates) == 1:
        return KeySelection(key=candidates[0], available=tuple(candidates))

    available = tuple(key for key in candidates if key not in blocked)
    if not available:
        logger.error("All API keys are quarantined, using the first key anyway")
        available = (candidates[0],)

    if len(available) == 1 or not any(usage.get(key) for key in available):
        return KeySelection(key=available[0], available=available)

    match policy:
        case KeySelectionPolicy.FIRST_UNUSED:
            key = next((k for k in available if not usage.get(k)), available[0])
        case _:
            # min() keeps the first of equal counts
            key = min(available, key=lambda k: usage.get(k, 0))

    return KeySelection(key=key, available=available)


class KeySelector:
    """Reads blocklist and usage state and picks a key with select_key."""

    def __init__(
        self,
        blocklist: BlocklistManager,
        usage_tracker: UsageTracker,
        policy: KeySelectionPolicy = KeySelectionPolicy.LEAST_USED,
    ):
        self.blocklist = blocklist
        self.usage_tracker = usage_tracker
        self.policy = policy

    async def select(self, candidates: Sequence[str]) -> KeySelection:
        if len(candidates) <= 1:
            return select_key(candidates, (), {}, self.policy)

        available = await self.blocklist.filter_available(candidates)
        blocked = set(candidates).difference(available)
        usage = await self.usage_tracker.get_today_usage(candidates)

        selection = select_key(candidates, blocked, usage, self.policy)
        logger.info(
            f"Selected key {mask_key(selection.key)} "
            f"({len(selection.available)}/{len(candidates)} available)"
        )
        return selection
