from enum import Enum

STEAM_API_URL = "https://api.steampowered.com"

# Placeholder replaced by STEAM_API_URL inside a "common proxy" template
PROXY_URL_PLACEHOLDER = "{{url}}"

# Query parameter names
KEY_PARAM = "key"
ACCESS_TOKEN_PARAM = "access_token"

# Shared store layout
STORE_NAMESPACE = "steam-plugin"
REQUEST_COUNT_PREFIX = f"{STORE_NAMESPACE}:api:"
BLOCKED_KEY_PREFIX = f"{STORE_NAMESPACE}:429key:"
KEY_USAGE_PREFIX = f"{STORE_NAMESPACE}:useKey:"

SECONDS_PER_DAY = 60 * 60 * 24
REQUEST_COUNT_RETENTION_DAYS = 3
KEY_USAGE_RETENTION_DAYS = 7
BLOCK_TTL_SECONDS = 60 * 10

RATE_LIMITED_STATUS = 429


class KeySelectionPolicy(str, Enum):
    """How a key is chosen among non-blocked candidates."""

    LEAST_USED = "least_used"
    FIRST_UNUSED = "first_unused"  # legacy behaviour


class StoreProvider(str, Enum):
    """Shared key-value store backends."""

    REDIS = "redis"
    MEMORY = "memory"
