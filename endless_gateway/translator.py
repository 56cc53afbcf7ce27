"""Re-encode an inbound request for a downstream service.

A request carrying a file goes out as multipart (file first, then the
form fields in the order received); anything else goes out as JSON.
"""
import json

from urllib3.filepost import encode_multipart_formdata

from .models import IncomingRequest, OutboundRequest

API_KEY_HEADER = "x-api-key"
IMAGE_FIELD = "image"


def fields_to_object(fields) -> dict:
    """Fold ordered form fields into a JSON object; repeated names become lists."""
    obj = {}
    for name, value in fields:
        if name not in obj:
            obj[name] = value
        elif isinstance(obj[name], list):
            obj[name].append(value)
        else:
            obj[name] = [obj[name], value]
    return obj


def build_form_request(incoming: IncomingRequest, api_key: str) -> OutboundRequest:
    parts = []
    attachment = incoming.attachment
    if attachment is not None:
        parts.append((attachment.field_name, (attachment.filename, attachment.data)))
    for name, value in incoming.fields:
        parts.append((name, str(value)))

    body, content_type = encode_multipart_formdata(parts)
    return OutboundRequest(
        body=body,
        headers={"Content-Type": content_type, API_KEY_HEADER: api_key},
    )


def build_json_request(incoming: IncomingRequest, api_key: str) -> OutboundRequest:
    if incoming.json_body:
        body = incoming.json_body
    else:
        # Form submissions without a file, or an empty body
        body = json.dumps(fields_to_object(incoming.fields)).encode("utf-8")
    return OutboundRequest(
        body=body,
        headers={"Content-Type": "application/json", API_KEY_HEADER: api_key},
    )


def translate(incoming: IncomingRequest, api_key: str) -> OutboundRequest:
    if incoming.attachment is not None:
        return build_form_request(incoming, api_key)
    return build_json_request(incoming, api_key)
