from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

from steam_gateway.core.constants import ACCESS_TOKEN_PARAM


class RequestSpec(BaseModel):
    """One logical Steam API call as supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str = "GET"
    params: Dict[str, Any] = {}
    headers: Dict[str, str] = {}
    json_body: Any = None
    data: Any = None
    base_url: Optional[str] = None  # Overrides the Steam API host for this call

    @property
    def has_access_token(self) -> bool:
        """Caller authenticates with its own token instead of a pool key."""
        return bool(self.params.get(ACCESS_TOKEN_PARAM))
