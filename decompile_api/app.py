import logging
from datetime import datetime, timezone

from flask import Flask, Response, g, jsonify, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from . import __version__
from .config import Config
from .errors import DecompileError, PayloadTooLarge
from .pipeline import decompile
from .ratelimit import FixedWindowLimiter

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests, please try again later."


def create_app(config=None):
    if config is None:
        config = Config.from_env()

    app = Flask(__name__)
    app.config["DECOMPILER"] = config
    app.config["MAX_CONTENT_LENGTH"] = config.max_file_size

    limiter = FixedWindowLimiter(config.rate_limit_max_requests, config.rate_limit_window)
    app.extensions["rate_limiter"] = limiter

    @app.before_request
    def apply_rate_limit():
        state = limiter.hit(request.remote_addr or "unknown")
        g.rate_limit = state
        if not state.allowed:
            logger.warning(f"Rate limit exceeded for {request.remote_addr}")
            return jsonify(error=RATE_LIMITED_MESSAGE), 429

    @app.after_request
    def add_rate_limit_headers(response):
        state = g.get("rate_limit")
        if state is not None:
            response.headers.extend(state.headers())
        return response

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify(status="healthy", timestamp=datetime.now(timezone.utc).isoformat())

    @app.route('/', methods=['GET'])
    def index():
        return jsonify(
            message="Luau Decompiler API",
            version=__version__,
            endpoints={"decompile": "POST /decompile", "health": "GET /health"},
        )

    @app.route('/decompile', methods=['POST'])
    def decompile_bytecode():
        source = decompile(request.get_data(), request.mimetype, config)
        return Response(source, status=200, content_type="text/plain; charset=utf-8")

    @app.errorhandler(DecompileError)
    def handle_decompile_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return handle_decompile_error(PayloadTooLarge(config.max_file_size))

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify(error=e.name), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception(f"Unhandled error: {e}")
        return jsonify(error="Internal server error"), 500

    return app
