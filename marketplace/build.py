#!/usr/bin/env python3
"""
Database build orchestrator for the marketplace
Creates tables, guarantees an admin account and optionally seeds debug data
"""

import os

from marketplace import create_app, db
from marketplace.logger import get_logger

logger = get_logger("marketplace.build")

ADMIN_EMAIL = 'admin@marketplace.local'


def insert_critical_data():
    """
    Ensure the admin account exists.

    The password comes from ADMIN_USER_PASSWORD; the build stops if it is
    missing because an admin without credentials cannot moderate anything.
    """
    from marketplace.data.core.user import User, UserRole, UserStatus

    if User.query.filter_by(email=ADMIN_EMAIL).first() is not None:
        logger.info("Admin user already present, skipping insertion")
        return

    password = os.environ.get('ADMIN_USER_PASSWORD')
    if not password:
        raise RuntimeError("ADMIN_USER_PASSWORD must be set to create the admin user")

    try:
        admin = User(
            name='Administrator',
            email=ADMIN_EMAIL,
            role=UserRole.ADMIN.value,
            status=UserStatus.ACTIVE.value,
        )
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Inserted admin user")


def build_database(enable_debug_data=True, app=None):
    """
    Create every table and insert critical data.

    Args:
        enable_debug_data (bool): Also insert the demo suppliers, buyers and products
        app: Existing application to build against (a new one is created otherwise)
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (debug data: {enable_debug_data})")
        db.create_all()
        logger.info("Tables created")

        insert_critical_data()

        if enable_debug_data:
            from marketplace.debug.add_marketplace_debugging_data import insert_debug_data
            logger.info("Inserting debug data...")
            insert_debug_data()

        logger.info("Database build completed")
