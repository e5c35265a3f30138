from __future__ import annotations

import os
from flask import Flask

from .extensions import init_extensions
from .models import AssignmentState
from .policies import is_admin_user
from .cli import santa_cli
from .views.auth import auth_bp
from .views.santa import santa_bp
from .views.public import public_bp


def _optional(value: str | None, cast):
    value = (value or "").strip()
    return cast(value) if value else None


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///familysanta.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Organizer is the person whose name matches this exactly; they are left out of the draw
    app.config["SANTA_ADMIN_NAME"] = os.environ.get("SANTA_ADMIN_NAME", "").strip()

    # Draw budget; exceeding it reports the setup as infeasible instead of looping forever
    app.config["SANTA_MAX_ATTEMPTS"] = _optional(os.environ.get("SANTA_MAX_ATTEMPTS"), int) or 100_000
    app.config["SANTA_TIMEOUT"] = _optional(os.environ.get("SANTA_TIMEOUT"), float)
    app.config["SANTA_SEED"] = _optional(os.environ.get("SANTA_SEED"), int)
    # Forbidden entries naming someone outside the draw fail the draw instead of a warning
    app.config["SANTA_STRICT_FORBIDDEN"] = (
        os.environ.get("SANTA_STRICT_FORBIDDEN", "").strip().lower() in ("1", "true", "yes")
    )
    app.config["SANTA_LOG_LEVEL"] = os.environ.get("SANTA_LOG_LEVEL", "INFO").upper()

    if test_config:
        app.config.update(test_config)

    # app.logger is the "family_santa" logger; the draw engine logs through its children
    app.logger.setLevel(app.config["SANTA_LOG_LEVEL"])

    init_extensions(app)

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(santa_bp)

    app.cli.add_command(santa_cli)

    @app.context_processor
    def inject_global_state():
        state = AssignmentState.get_singleton()
        return {
            "assignments_locked": state.is_locked,
            "assignment_run_at": state.run_at,
            "is_admin": is_admin_user(),
        }

    return app
