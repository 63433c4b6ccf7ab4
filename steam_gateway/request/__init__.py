from .client import SteamApiClient
from .dispatcher import RequestDispatcher
from .factory import close_client, get, get_client, post, reset_client
from .models import RequestSpec
from .retry import RetryController, RetryState

__all__ = [
    "RequestDispatcher",
    "RequestSpec",
    "RetryController",
    "RetryState",
    "SteamApiClient",
    "close_client",
    "get",
    "get_client",
    "post",
    "reset_client",
]
