# backend/caja/__init__.py
from flask import Flask, request
from sqlalchemy import event

from .config import Config
from .extensions import db, migrate, audit_dispatcher


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Only the hash is kept around for request-time checks
    if not app.config.get("ADMIN_PASSWORD_HASH"):
        from .services.auth_service import hash_password
        app.config["ADMIN_PASSWORD_HASH"] = hash_password(
            app.config["ADMIN_PASSWORD"], rounds=app.config["BCRYPT_ROUNDS"]
        )
    app.config.pop("ADMIN_PASSWORD", None)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            event.listen(db.engine, "connect", _set_sqlite_pragmas)

    from .services import audit_service
    audit_dispatcher.init_app(app, audit_service.write_operation)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.registers import registers_bp
    from .routes.promotions import promotions_bp
    from .routes.vendors import vendors_bp
    from .routes.licensing import licensing_bp
    from .routes.settings import settings_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(registers_bp)
    app.register_blueprint(promotions_bp)
    app.register_blueprint(vendors_bp)
    app.register_blueprint(licensing_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(admin_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    if app.config.get("AUTO_CREATE_SCHEMA"):
        from .services import settings_service
        with app.app_context():
            db.create_all()
            settings_service.ensure_defaults()
            if app.config.get("SEED_SAMPLE_DATA"):
                settings_service.seed_sample_products()

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
