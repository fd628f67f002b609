"""Application factory and app-wide configuration."""

from typing import Optional

from flask import Flask
from flask_cors import CORS

from yield_projection.app.api.routes import api_bp
from yield_projection.settings import EngineSettings


def create_app(settings: Optional[EngineSettings] = None) -> Flask:
    """Build the Flask app instance."""
    app = Flask(__name__)
    app.config["ENGINE_SETTINGS"] = settings or EngineSettings()

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["ENGINE_SETTINGS"].cors_origins}},
        supports_credentials=True,
    )

    app.register_blueprint(api_bp, url_prefix="/api")
    return app
