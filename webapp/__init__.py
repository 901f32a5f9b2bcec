# webapp/__init__.py

import atexit
from typing import Any, Mapping, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from .config import Config
from .errors import StatsError
from .logging_utils import setup_logging
from .routes.lineups import lineups_bp
from .routes.meta import meta_bp
from .routes.players import players_bp
from .runtime import EXTENSION_KEY, Runtime, build_runtime


def create_app(
    overrides: Optional[Mapping[str, Any]] = None,
    runtime: Optional[Runtime] = None,
) -> Flask:
    app = Flask("webapp")

    # Core config
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    setup_logging(app.config["LOG_LEVEL"])

    # CORS: allow a separately served frontend to hit /api/*
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # One engine / cache / upstream client per process
    if runtime is None:
        runtime = build_runtime(app.config)
        atexit.register(runtime.close)
    app.extensions[EXTENSION_KEY] = runtime

    # Register blueprints
    app.register_blueprint(meta_bp)
    app.register_blueprint(players_bp)
    app.register_blueprint(lineups_bp)

    @app.errorhandler(StatsError)
    def _stats_unavailable(exc: StatsError):
        app.logger.warning("stats unavailable: %s", exc)
        return jsonify({"error": "data unavailable"}), 503

    return app
