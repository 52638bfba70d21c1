# backend/cashledger/__init__.py
from flask import Flask

from .clock import EXTENSION_KEY, clock_from_config
from .config import Config
from .extensions import db, migrate



def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Grouped reads on SQLite need an explicit BEGIN
    from .services.concurrency import enable_sqlite_snapshots
    with app.app_context():
        enable_sqlite_snapshots(db.engine)

    # Shared "now" for windows, mora, payoff and reports
    app.extensions[EXTENSION_KEY] = clock_from_config(app.config)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.cash_cuts import cash_cuts_bp
    from .routes.credits import credits_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(cash_cuts_bp)
    app.register_blueprint(credits_bp)
    app.register_blueprint(reports_bp)

    return app
