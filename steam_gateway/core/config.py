import math
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from steam_gateway.core.constants import (
    PROXY_URL_PLACEHOLDER,
    STEAM_API_URL,
    KeySelectionPolicy,
    StoreProvider,
)


class ClientConfig(BaseModel):
    """Immutable configuration handed to the dispatcher and key selector."""

    model_config = ConfigDict(frozen=True)

    api_keys: Tuple[str, ...] = ()
    proxy: Optional[str] = None
    https_proxy: Optional[str] = None
    common_proxy: Optional[str] = None
    api_proxy: Optional[str] = None
    timeout: float = 5
    language: str = "schinese"
    country: str = "CN"
    selection_policy: KeySelectionPolicy = KeySelectionPolicy.LEAST_USED
    usage_timezone: str = "UTC"

    @property
    def steam_base_url(self) -> str:
        """Base URL key-authenticated calls are sent to."""
        if self.common_proxy:
            base_url = self.common_proxy.replace(PROXY_URL_PLACEHOLDER, STEAM_API_URL)
        elif self.api_proxy:
            base_url = self.api_proxy
        else:
            base_url = STEAM_API_URL
        return base_url.rstrip("/")

    @property
    def max_retry(self) -> int:
        """Key-rotation retry budget, scaled with the pool size."""
        return max(math.ceil(len(self.api_keys) * 1.5), 3)

    @property
    def proxy_mounts(self) -> Dict[str, str]:
        """Outbound proxy per URL scheme, empty when no proxy is configured."""
        mounts = {}
        if self.proxy:
            mounts["http://"] = self.proxy
        if self.https_proxy or self.proxy:
            mounts["https://"] = self.https_proxy or self.proxy
        return mounts


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Steam Web API
    steam_api_keys: List[str] = []
    steam_proxy: Optional[str] = None  # Outbound proxy for plain and secure traffic
    steam_https_proxy: Optional[str] = None  # Overrides steam_proxy for https
    steam_common_proxy: Optional[str] = None  # e.g. "https://proxy.example/{{url}}"
    steam_api_proxy: Optional[str] = None  # Direct replacement for the API host
    steam_timeout: float = 5  # Seconds
    steam_language: str = "schinese"
    steam_country: str = "CN"

    # Key balancing
    key_selection_policy: KeySelectionPolicy = KeySelectionPolicy.LEAST_USED
    usage_timezone: str = "UTC"

    # Shared store
    store_provider: StoreProvider = StoreProvider.REDIS

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @property
    def redis_connection_url(self) -> str:
        """Construct Redis URL from components."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        else:
            return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # OpenTelemetry
    otel_service_name: str = "steam-gateway"
    otel_exporter_endpoint: Optional[str] = None  # e.g. "https://collector:4318"
    otel_exporter_headers: Dict[str, str] = {}

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            api_keys=tuple(self.steam_api_keys),
            proxy=self.steam_proxy,
            https_proxy=self.steam_https_proxy,
            common_proxy=self.steam_common_proxy,
            api_proxy=self.steam_api_proxy,
            timeout=self.steam_timeout,
            language=self.steam_language,
            country=self.steam_country,
            selection_policy=self.key_selection_policy,
            usage_timezone=self.usage_timezone,
        )


settings = Settings()
