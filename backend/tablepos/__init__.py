# backend/tablepos/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.sessions import sessions_bp
    from .routes.products import products_bp, categories_bp
    from .routes.stock import stock_bp
    from .routes.sales import sales_bp
    from .routes.expenses import expenses_bp
    from .routes.tables import tables_bp
    from .routes.orders import orders_bp, order_items_bp, kitchen_bp
    from .routes.reports import reports_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(order_items_bp)
    app.register_blueprint(kitchen_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(admin_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("RUN_STARTUP_TASKS"):
        run_startup_tasks(app)

    return app


def run_startup_tasks(app: Flask) -> None:
    """
    Boot-time housekeeping:
    - create the schema (AUTO_CREATE_SCHEMA)
    - open an initial business day if none exists, and today's if the day rolled over while down
    - seed the starter menu (SEED_CATALOG_ON_STARTUP)
    - start the periodic day-rollover task (DAY_ROLLOVER_ENABLED)
    """
    from .services import business_session_service, seed_service
    from .scheduler import DayRolloverScheduler

    with app.app_context():
        if app.config.get("AUTO_CREATE_SCHEMA"):
            db.create_all()

        business_session_service.ensure_initial_session()
        if app.config.get("DAY_ROLLOVER_ENABLED"):
            business_session_service.ensure_session_for_today()

        if app.config.get("SEED_CATALOG_ON_STARTUP"):
            seed_service.seed_catalog()

    if app.config.get("DAY_ROLLOVER_ENABLED") and not app.testing:
        scheduler = DayRolloverScheduler(app, app.config.get("DAY_ROLLOVER_INTERVAL_SECONDS", 60))
        scheduler.start()
        app.extensions["day_rollover"] = scheduler
