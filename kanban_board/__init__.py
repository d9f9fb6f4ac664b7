import os
import logging

import click
from flask import Flask, jsonify, request

from kanban_board.config import config_by_name
from kanban_board.extensions import db, migrate


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from kanban_board import models  # noqa: F401

    # --- Register blueprints ---
    from kanban_board.blueprints.api import api_bp

    app.register_blueprint(api_bp)

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        app.logger.error(f"Unhandled error on {request.method} {request.path}: {e}")
        return jsonify({"error": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-board")
    @click.option("--create-tables", is_flag=True, help="Create missing tables first (no migrations).")
    def seed_board(create_tables):
        """Create the default To Do / Doing / Done columns if missing.

        Usage:
            flask seed-board
            flask seed-board --create-tables
        """
        from kanban_board.services.board_service import ensure_default_columns

        if create_tables:
            db.create_all()
            click.echo("Tables created.")

        created = ensure_default_columns()
        db.session.commit()

        if not created:
            click.echo("Default columns already present.")
            return
        for column in created:
            click.echo(f"  Created column: {column.title} ({column.slug}, ord {column.ord})")
