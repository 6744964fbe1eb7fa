import logging
import os

from flask import Flask, flash, jsonify, redirect, request, url_for
from flask_wtf import CSRFProtect
from flask_wtf.csrf import CSRFError

from .config import Config


LOGGER = logging.getLogger(__name__)

csrf = CSRFProtect()


def create_app(config_class: type = Config) -> Flask:
    base_dir = os.path.abspath(os.path.dirname(__file__))
    app = Flask(
        __name__,
        template_folder=os.path.join(base_dir, "templates"),
    )
    app.config.from_object(config_class)

    csrf.init_app(app)

    from .views import api_bp, main_bp

    csrf.exempt(api_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    @app.context_processor
    def inject_globals():
        return {
            "max_input_bytes": app.config.get("MAX_CONTENT_LENGTH"),
        }

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error: CSRFError):
        message = error.description or "Your session expired. Please refresh and try again."
        LOGGER.warning("Rejected request with invalid CSRF token: %s", message)
        if request.headers.get("X-Requested-With") == "XMLHttpRequest" or request.accept_mimetypes.accept_json:
            return jsonify({"status": "error", "message": message}), 400
        flash(message, "danger")
        return redirect(url_for("main.index"))

    return app
