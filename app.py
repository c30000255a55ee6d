import logging

import click
from flask import Flask, request, jsonify
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from models import db
from models.user import User
from routes import health_bp, auth_bp, admin_bp, booking_bp, history_bp
from security.csrf import csrf_protect
from security.rbac import is_valid_role, VALID_ROLES
from services import BookingService, ServiceError
from services.notifications import EmailSmsBookingNotifier, NotificationDispatcher
from services.sql_repository import SqlAlchemyBookingRepository, SqlAlchemyActorDirectory
from utils.auth_context import load_current_user


def create_app(config_object=Config, notifier=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(history_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    app.extensions["booking_service"] = BookingService(
        SqlAlchemyBookingRepository(),
        SqlAlchemyActorDirectory(),
        notifier or EmailSmsBookingNotifier(app.config),
        NotificationDispatcher(run_async=app.config.get("NOTIFICATIONS_ASYNC", True)),
        notes_max_length=app.config.get("BOOKING_NOTES_MAX_LENGTH", 1000),
    )

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        return csrf_protect()

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_error_handlers(app)
    register_cli(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def _service_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _http_error(err):
        return jsonify(error=err.description), err.code

    @app.errorhandler(Exception)
    def _unexpected(err):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error="Internal server error"), 500


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create tables without migrations (local development)."""
        db.create_all()
        click.echo("Database initialised")

    @app.cli.command("set-role")
    @click.argument("email")
    @click.argument("role")
    def set_role(email, role):
        """Bootstrap: set a user's role (user, render, admin) by email."""
        if not is_valid_role(role):
            raise click.BadParameter(f"role must be one of: {', '.join(VALID_ROLES)}")

        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            raise click.ClickException("User not found")

        user.role = role
        db.session.commit()
        click.echo(f"{user.email} is now {role}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
