"""Remote backend access: session contract, errors and the REST client."""

from birdscope.remote.errors import RemoteCallError
from birdscope.remote.rest import RestClient, create_http_client
from birdscope.remote.session import SessionContext, UserSession

__all__ = [
    "RemoteCallError",
    "RestClient",
    "SessionContext",
    "UserSession",
    "create_http_client",
]
