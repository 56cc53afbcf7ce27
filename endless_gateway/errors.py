"""Failures raised inside the proxy pipeline.

Each error carries the human readable message that ends up in the
``details`` field of the JSON error envelope.
"""


class GatewayError(Exception):
    """Base class for every failure the proxy endpoint reports."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AuthenticationError(GatewayError):
    """Missing or malformed Authorization header, or a rejected token."""


class AuthorizationError(GatewayError):
    """The caller is known but has no stored API key."""


class RoutingError(GatewayError):
    """The requested service is not in the route table."""


class TransportError(GatewayError):
    """The downstream service could not be reached."""


class ConfigurationError(GatewayError):
    """A required setting was not supplied at startup."""
