import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

# ----------------------
# Downstream hosts
# ----------------------
DEFAULT_VECTORS_SERVICE_URL = "https://endless-vectors-gxda.onrender.com"
DEFAULT_IMAGES_SERVICE_URL = "https://endless-images-second-life.onrender.com"
DEFAULT_BUREAUCRACY_SERVICE_URL = "https://endless-bureaucracy.onrender.com"
DEFAULT_CODE_SERVICE_URL = "https://endless-code.onrender.com"


def build_routes(
    vectors_url: str = DEFAULT_VECTORS_SERVICE_URL,
    images_url: str = DEFAULT_IMAGES_SERVICE_URL,
    bureaucracy_url: str = DEFAULT_BUREAUCRACY_SERVICE_URL,
    code_url: str = DEFAULT_CODE_SERVICE_URL,
) -> Mapping[str, str]:
    """Return the read-only service name -> downstream URL table."""
    vectors_url = vectors_url.rstrip("/")
    images_url = images_url.rstrip("/")
    bureaucracy_url = bureaucracy_url.rstrip("/")
    code_url = code_url.rstrip("/")
    return MappingProxyType({
        "vectors": f"{vectors_url}/convert",
        "images": f"{images_url}/convert",
        "contact": f"{bureaucracy_url}/contact",
        "profilepicture": f"{bureaucracy_url}/upload-profile-pic",
        "profilename": f"{bureaucracy_url}/update-profile-name",
        "codedetect": f"{code_url}/detect",
        "codecompact": f"{code_url}/compact",
        "codeuncompact": f"{code_url}/uncompact",
        "codeformat": f"{code_url}/format",
    })


def parse_origins(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated origin list, dropping blanks."""
    if not raw:
        return ()
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


# ----------------------
# Settings
# ----------------------
@dataclass(frozen=True)
class Settings:
    port: int = 3001
    host: str = "0.0.0.0"
    allowed_origins: Tuple[str, ...] = ()
    firebase_project_id: Optional[str] = None
    users_collection: str = "users"
    upstream_timeout: float = 30.0
    routes: Mapping[str, str] = field(default_factory=build_routes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            port=int(env.get("PORT", "3001")),
            host=env.get("HOST", "0.0.0.0"),
            allowed_origins=parse_origins(env.get("ALLOWED_ORIGINS")),
            firebase_project_id=env.get("FIREBASE_PROJECT_ID") or None,
            users_collection=env.get("USERS_COLLECTION", "users"),
            upstream_timeout=float(env.get("UPSTREAM_TIMEOUT", "30")),
            routes=build_routes(
                vectors_url=env.get("VECTORS_SERVICE_URL", DEFAULT_VECTORS_SERVICE_URL),
                images_url=env.get("IMAGES_SERVICE_URL", DEFAULT_IMAGES_SERVICE_URL),
                bureaucracy_url=env.get("BUREAUCRACY_SERVICE_URL", DEFAULT_BUREAUCRACY_SERVICE_URL),
                code_url=env.get("CODE_SERVICE_URL", DEFAULT_CODE_SERVICE_URL),
            ),
        )
