"""
Munch Club Admin - Flask admin backend for the Munch Club storefront
=====================================================================

JSON API behind the Munch Club admin panel:
- Orders: list/search, detail projection, status updates with history,
  printer status reconciliation, hard delete
- Coupons: search and redemption against the document store
- Users, books, recipes and payments management
- Dashboard statistics

Usage:
    from flask import Flask
    from munchclub_admin import MunchclubAdmin

    app = Flask(__name__)
    MunchclubAdmin(app)
"""

__version__ = '0.1.0'
__author__ = 'Munch Club'

import atexit
import logging
import os

from flask_cors import CORS

from .core.config import Config
from .core.database import db
from .core.document_store import CouponStore
from .modules.printer.service import PrinterGatewayService

logger = logging.getLogger(__name__)

# Config keys copied into app.config unless the host app already set them
CONFIG_KEYS = (
    'SECRET_KEY', 'DB_DIR', 'SQLALCHEMY_DATABASE_URI', 'SQLALCHEMY_TRACK_MODIFICATIONS',
    'MONGODB_URI', 'MONGODB_DB', 'COUPONS_COLLECTION', 'LOG_DB',
    'MAIN_APP_URL', 'PRINTER_GATEWAY_URL', 'PRINTER_API_TIMEOUT', 'CORS_ORIGINS',
)

DEFAULT_FEATURES = {
    'orders': True,
    'coupons': True,
    'users': True,
    'books': True,
    'recipes': True,
    'payments': True,
    'dashboard': True,
}


class MunchclubAdmin:
    """
    Flask extension wiring the admin modules into an app.

    config may carry:
        features: {module_name: bool} to switch modules off
        coupon_store: a ready CouponStore (e.g. around a test client)
        printer_gateway: a ready PrinterGatewayService
    """

    def __init__(self, app=None, config=None):
        self._config = dict(config or {})
        self._registered = []
        self.coupon_store = None
        self.printer_gateway = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        for key in CONFIG_KEYS:
            app.config.setdefault(key, getattr(Config, key))

        self._setup_database_dir(app)

        db.init_app(app)
        with app.app_context():
            from .core import models  # noqa: F401
            db.create_all()

        CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})

        self.coupon_store = self._config.get('coupon_store') or CouponStore(
            uri=app.config['MONGODB_URI'],
            db_name=app.config['MONGODB_DB'],
            collection=app.config['COUPONS_COLLECTION'],
        )
        # One client shared by all request threads, released at interpreter exit
        if self.coupon_store.connected or self.coupon_store.uri:
            self.coupon_store.connect()
            atexit.register(self.coupon_store.close)
        self.printer_gateway = self._config.get('printer_gateway') or PrinterGatewayService(
            base_url=app.config['PRINTER_GATEWAY_URL'],
            timeout=float(app.config['PRINTER_API_TIMEOUT']),
        )

        app.extensions['munchclub_admin'] = self
        self._register_modules(app)

        from .cli import register_commands
        register_commands(app)

    def _setup_database_dir(self, app):
        """Create DB_DIR and the directory of a file-based SQLite database"""
        db_dir = app.config.get('DB_DIR')
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        uri = app.config.get('SQLALCHEMY_DATABASE_URI') or ''
        if uri.startswith('sqlite:///'):
            path = uri[len('sqlite:///'):]
            if path and path != ':memory:' and os.path.dirname(path):
                os.makedirs(os.path.dirname(path), exist_ok=True)

    def _features(self):
        features = dict(DEFAULT_FEATURES)
        features.update(self._config.get('features') or {})
        return features

    def _register_modules(self, app):
        from .modules.orders import orders_bp
        from .modules.coupons import coupons_bp
        from .modules.users import users_bp
        from .modules.books import books_bp
        from .modules.recipes import recipes_bp
        from .modules.payments import payments_bp
        from .modules.dashboard import dashboard_bp

        blueprints = {
            'orders': orders_bp,
            'coupons': coupons_bp,
            'users': users_bp,
            'books': books_bp,
            'recipes': recipes_bp,
            'payments': payments_bp,
            'dashboard': dashboard_bp,
        }

        features = self._features()
        for name, blueprint in blueprints.items():
            if not features.get(name):
                logger.info("Module '%s' disabled", name)
                continue
            app.register_blueprint(blueprint)
            self._registered.append(name)

    def get_registered_modules(self):
        return list(self._registered)


__all__ = ['MunchclubAdmin', 'Config', 'db']
