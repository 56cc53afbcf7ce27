from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Attachment:
    field_name: str
    data: bytes
    filename: str


@dataclass(frozen=True)
class IncomingRequest:
    """What the proxy endpoint needs from the inbound HTTP request.

    ``fields`` keeps form fields in the order they were received;
    ``json_body`` holds the raw bytes when the request was sent as JSON.
    """

    service: str
    authorization_header: Optional[str] = None
    fields: List[Tuple[str, str]] = field(default_factory=list)
    json_body: Optional[bytes] = None
    attachment: Optional[Attachment] = None


@dataclass(frozen=True)
class VerifiedIdentity:
    subject_id: str


@dataclass(frozen=True)
class OutboundRequest:
    body: bytes
    headers: Dict[str, str]


@dataclass(frozen=True)
class ProxiedResponse:
    content_type: str
    body: bytes
    status_code: int = 200
