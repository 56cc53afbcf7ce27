import logging
import time
from typing import Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from .config import Settings
from .dispatcher import Dispatcher
from .errors import GatewayError, RoutingError
from .identity import IdentityResolver
from .models import Attachment, IncomingRequest
from .translator import IMAGE_FIELD, translate

logger = logging.getLogger("endless-gateway")

SERVICE_NAME = "Endless Gateway API"


# ----------------------
# Helpers
# ----------------------
def parse_incoming(service: str) -> IncomingRequest:
    """Collect the parts of the current Flask request the proxy forwards."""
    json_body = request.get_data() if request.is_json else None

    attachment = None
    upload = request.files.get(IMAGE_FIELD)
    if upload is not None and upload.filename:
        attachment = Attachment(IMAGE_FIELD, upload.read(), upload.filename)

    return IncomingRequest(
        service=service,
        authorization_header=request.headers.get("Authorization"),
        fields=list(request.form.items(multi=True)),
        json_body=json_body,
        attachment=attachment,
    )


# ----------------------
# App Setup
# ----------------------
def create_app(
    settings: Optional[Settings] = None,
    identity_resolver: Optional[IdentityResolver] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    if identity_resolver is None:
        if not settings.firebase_project_id:
            logger.error("FIREBASE_PROJECT_ID is not configured")
        identity_resolver = IdentityResolver(
            settings.firebase_project_id, users_collection=settings.users_collection
        )
    if dispatcher is None:
        dispatcher = Dispatcher(settings.routes, timeout=settings.upstream_timeout)

    allowed_origins = frozenset(settings.allowed_origins)
    started_at = time.monotonic()

    app = Flask(__name__)
    CORS(
        app,
        origins=list(settings.allowed_origins),
        methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.before_request
    def enforce_allowed_origin():
        origin = request.headers.get("Origin")
        if origin and origin not in allowed_origins:
            logger.warning("Rejected request from origin %s", origin)
            return jsonify({"error": "Not allowed by CORS"}), 403
        return None

    # ----------------------
    # Endpoints
    # ----------------------
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({
            "status": "OK",
            "uptime": time.monotonic() - started_at,
            "service": SERVICE_NAME,
        }), 200

    @app.route("/api/proxy/<service>", methods=["POST"])
    def proxy(service):
        try:
            incoming = parse_incoming(service)
            url = dispatcher.resolve(incoming.service)
            api_key = identity_resolver.resolve_api_key(incoming.authorization_header)
            outbound = translate(incoming, api_key)
            proxied = dispatcher.forward(url, outbound)
        except RoutingError:
            logger.warning("Unknown service requested: %s", service)
            return jsonify({"error": "Unknown service"}), 400
        except GatewayError as e:
            logger.error("Proxy error for %s: %s", service, e)
            return jsonify({"error": "Proxy failed", "details": str(e)}), 500
        except Exception as e:
            logger.exception("Unexpected proxy failure for %s: %s", service, e)
            return jsonify({"error": "Proxy failed", "details": str(e)}), 500

        logger.info("Relayed %s (downstream status %s)", service, proxied.status_code)
        return Response(proxied.body, status=200, content_type=proxied.content_type)

    return app
