import logging
import re
from typing import Any, Callable, Optional

# Google auth for Firebase ID token verification
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2 import id_token as google_id_token

from .errors import AuthenticationError, AuthorizationError, ConfigurationError
from .models import VerifiedIdentity

logger = logging.getLogger("endless-gateway.identity")

BEARER_PATTERN = re.compile(r"^Bearer (\S+)$")


def extract_bearer_token(authorization_header: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    match = BEARER_PATTERN.match(authorization_header or "")
    if not match:
        raise AuthenticationError("missing or invalid authorization header")
    return match.group(1)


def _default_firestore_client(project_id: str):
    from google.cloud import firestore

    return firestore.Client(project=project_id)


class IdentityResolver:
    """Maps a Firebase ID token to the API key stored on the user's record.

    The Firestore client is created on first use so the app can start (and
    answer health checks) without credentials being available yet.
    """

    def __init__(
        self,
        project_id: Optional[str],
        users_collection: str = "users",
        firestore_client: Any = None,
        client_factory: Callable[[str], Any] = _default_firestore_client,
    ):
        self.project_id = project_id
        self.users_collection = users_collection
        self._client = firestore_client
        self._client_factory = client_factory

    def _firestore(self):
        if self._client is None:
            if not self.project_id:
                raise ConfigurationError("FIREBASE_PROJECT_ID is not configured")
            self._client = self._client_factory(self.project_id)
        return self._client

    def verify_token(self, token: str) -> VerifiedIdentity:
        if not self.project_id:
            raise ConfigurationError("FIREBASE_PROJECT_ID is not configured")
        try:
            claims = google_id_token.verify_firebase_token(
                token, GoogleRequest(), audience=self.project_id
            )
        except (ValueError, GoogleAuthError) as e:
            raise AuthenticationError(f"invalid token: {e}") from e
        subject_id = (claims or {}).get("sub")
        if not subject_id:
            raise AuthenticationError("invalid token: no subject")
        return VerifiedIdentity(subject_id=subject_id)

    def fetch_user(self, identity: VerifiedIdentity) -> dict:
        snapshot = (
            self._firestore()
            .collection(self.users_collection)
            .document(identity.subject_id)
            .get()
        )
        if not snapshot.exists:
            raise AuthorizationError("user not found")
        return snapshot.to_dict() or {}

    def resolve_api_key(self, authorization_header: Optional[str]) -> str:
        """Verify the caller and return their stored ``api.key``.

        String keys are returned unchanged; numeric keys as their ``str()``.
        """
        token = extract_bearer_token(authorization_header)
        identity = self.verify_token(token)
        record = self.fetch_user(identity)

        api = record.get("api")
        api_key = api.get("key") if isinstance(api, dict) else None
        # Firestore numbers go out in their string form
        if isinstance(api_key, (int, float)) and not isinstance(api_key, bool):
            api_key = str(api_key)
        if not isinstance(api_key, str) or not api_key:
            raise AuthorizationError("api key not found")

        logger.debug("Resolved API key for user %s", identity.subject_id)
        return api_key
