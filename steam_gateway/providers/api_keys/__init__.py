from .blocklist import BlocklistManager
from .key_selector import KeySelection, KeySelector, select_key
from .usage_tracker import UsageTracker

__all__ = [
    "BlocklistManager",
    "KeySelection",
    "KeySelector",
    "UsageTracker",
    "select_key",
]
