from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
from marketplace.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(config_overrides=None):
    """
    Application factory for the marketplace API.

    Args:
        config_overrides: Optional mapping applied after environment configuration
            (used by tests to point at an in-memory database).

    Returns:
        Flask: Configured application
    """
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("marketplace")
    logger.info("Initializing Flask application")

    config_overrides = dict(config_overrides or {})

    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = config_overrides.get('SECRET_KEY') or os.environ.get('SECRET_KEY')
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file in instance/
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'marketplace.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Session cookie security configuration
    app.config['SESSION_COOKIE_SECURE'] = _env_flag('SESSION_COOKIE_SECURE', 'True')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['PERMANENT_SESSION_LIFETIME'] = int(os.environ.get('PERMANENT_SESSION_LIFETIME', '3600'))

    # Rate limiting
    app.config['RATELIMIT_ENABLED'] = _env_flag('RATELIMIT_ENABLED', 'True')

    # Default page size for admin listings
    app.config['ORDERS_PER_PAGE'] = int(os.environ.get('ORDERS_PER_PAGE', '20'))

    app.config.update(config_overrides)

    if not app.config['SESSION_COOKIE_SECURE']:
        logger.warning("Secure session cookies DISABLED - Acceptable for development only!")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from marketplace.data.core.user import User
    from marketplace.data.catalog.product import Product
    from marketplace.data.cart.cart_entry import CartEntry
    from marketplace.data.ordering.order import Order
    from marketplace.data.ordering.order_item import OrderItem
    from marketplace.data.ordering.order_activity_log import OrderActivityLog
    from marketplace.data.quoting.quote_request import QuoteRequest
    from marketplace.data.notifications.notification import Notification

    logger.debug("Models imported and registered")

    # Register blueprints
    from marketplace.auth import auth
    from marketplace.presentation.routes import init_app as init_routes

    app.register_blueprint(auth, url_prefix='/auth')
    init_routes(app)

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Cache-Control'] = 'no-store'
        return response

    logger.info("Flask application initialization complete")

    return app
