import logging
from typing import Mapping

import requests

from .errors import RoutingError, TransportError
from .models import OutboundRequest, ProxiedResponse

logger = logging.getLogger("endless-gateway.dispatcher")

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class Dispatcher:
    """Looks up downstream URLs and relays a single POST to them."""

    def __init__(self, routes: Mapping[str, str], timeout: float = 30.0):
        self.routes = routes
        self.timeout = timeout

    def resolve(self, service: str) -> str:
        url = self.routes.get(service)
        if not url:
            raise RoutingError("unknown service")
        return url

    def forward(self, url: str, outbound: OutboundRequest) -> ProxiedResponse:
        """POST ``outbound`` to ``url``; the downstream status is not inspected."""
        try:
            resp = requests.post(
                url,
                data=outbound.body,
                headers=outbound.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.InvalidHeader:
            # The message quotes the offending value, which may be the API key
            raise TransportError("downstream request failed: invalid header value") from None
        except requests.RequestException as e:
            raise TransportError(f"downstream request failed: {e}") from e

        return ProxiedResponse(
            content_type=resp.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE,
            body=resp.content,
            status_code=resp.status_code,
        )
