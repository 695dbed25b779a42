"""
ReadAble Application Factory
"""
import logging
import os
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect

from config import config
from readable.bridge import SessionBridge

csrf = CSRFProtect()
session_bridge = SessionBridge()

# Version info
APP_VERSION = os.environ.get("APP_VERSION", "2025.1")
BUILD_TIME = os.environ.get("BUILD_TIME", "")
GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


def create_app(config_name="default"):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    csrf.init_app(app)
    session_bridge.init_app(app)

    # Register blueprints
    from readable.api import api_bp
    from readable.pages import pages_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(pages_bp)

    # Exempt API routes from CSRF (script clients don't send tokens)
    csrf.exempt(api_bp)

    @app.route("/healthz")
    def healthz():
        """Health check for load balancers and monitoring"""
        providers = {
            "openai": "configured" if app.config.get("OPENAI_API_KEY") else "missing key",
            "anthropic": "configured" if app.config.get("ANTHROPIC_API_KEY") else "missing key",
        }
        return jsonify({
            "status": "ok",
            "version": APP_VERSION,
            "providers": providers,
            "bridge_slots": len(session_bridge),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @app.route("/version")
    def version():
        """Version and build info"""
        return jsonify({
            "version": APP_VERSION,
            "build_time": BUILD_TIME,
            "git_commit": GIT_COMMIT,
            "features": {
                "dyslexia": True,
                "blindness": True,
                "autism": True,
                "adhd": True,
                "ocr_fallback": bool(app.config.get("OCR_FALLBACK")),
            },
        })

    app.logger.info("ReadAble %s started (%s config)", APP_VERSION, config_name)
    return app
