"""
Routes package for the marketplace JSON API
Organized by aggregate, mirroring the business layer
"""

from marketplace.logger import get_logger

logger = get_logger("marketplace.routes")


def init_app(app):
    """Initialize all route blueprints and JSON error handlers with the Flask app"""
    logger.debug("Initializing route blueprints")

    from . import cart, notifications, orders, products, quotes
    from .errors import register_error_handlers

    app.register_blueprint(products.bp, url_prefix='/api/products')
    app.register_blueprint(cart.bp, url_prefix='/api/cart')
    app.register_blueprint(orders.bp, url_prefix='/api/orders')
    app.register_blueprint(quotes.bp, url_prefix='/api/quotes')
    app.register_blueprint(notifications.bp, url_prefix='/api/notifications')

    register_error_handlers(app)
    logger.debug("Route blueprints registered")
