#!/usr/bin/env python3
"""
Marketplace debug data
Demo supplier, buyer and catalog for local development.

Products go through ProductContext so they follow the same validation and
moderation flow as real submissions.
"""

import os

from marketplace import db
from marketplace.data.core.user import User, UserRole, UserStatus
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.catalog.product_context import ProductContext
from marketplace.logger import get_logger

logger = get_logger("marketplace.debug")

DEBUG_USERS = [
    {
        'name': 'Amina Textiles', 'email': 'supplier@marketplace.local', 'role': UserRole.SUPPLIER,
        'status': UserStatus.APPROVED, 'company_name': 'Amina Textiles Ltd', 'phone': '+255700000001',
    },
    {
        'name': 'Baraka Manufacturing', 'email': 'buyer@marketplace.local', 'role': UserRole.MANUFACTURER,
        'status': UserStatus.ACTIVE, 'company_name': 'Baraka Manufacturing Co', 'phone': '+255700000002',
        'factory_address': 'Plot 12, Industrial Area', 'factory_place_name': 'Baraka Plant 1',
        'factory_contact_name': 'Receiving Desk', 'factory_contact_phone': '+255700000003',
    },
]

DEBUG_PRODUCTS = [
    {'name': 'Raw Cotton', 'category': 'fibres', 'unit': 'kg', 'price': '3.20', 'stock': 500,
     'negotiable': True, 'payment_methods': ['bank_transfer', 'mobile_money']},
    {'name': 'Polyester Yarn', 'category': 'yarn', 'unit': 'cone', 'price': '12.50', 'stock': 120,
     'negotiable': False, 'payment_methods': ['bank_transfer']},
    {'name': 'Indigo Dye', 'category': 'chemicals', 'unit': 'litre', 'price': '8.75', 'stock': 60,
     'negotiable': True, 'payment_methods': ['bank_transfer', 'cash']},
]


def _find_or_create_user(data, password):
    user = User.query.filter_by(email=data['email']).first()
    if user is not None:
        return user, False
    fields = dict(data)
    fields['role'] = fields['role'].value
    fields['status'] = fields['status'].value
    user = User(**fields)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user, True


def insert_debug_data():
    """
    Insert demo users and an approved catalog.

    Returns:
        dict: Counts of inserted users and products
    """
    password = os.environ.get('DEBUG_USER_PASSWORD')
    if not password:
        raise RuntimeError("DEBUG_USER_PASSWORD must be set to insert debug users")

    summary = {'users': 0, 'products': 0}
    users = {}
    try:
        for data in DEBUG_USERS:
            user, created = _find_or_create_user(data, password)
            users[data['role']] = user
            summary['users'] += int(created)
    except Exception:
        db.session.rollback()
        raise

    supplier = Actor.from_user(users[UserRole.SUPPLIER])
    admin_user = User.query.filter_by(role=UserRole.ADMIN.value).first()
    if admin_user is None:
        raise RuntimeError("Admin user not found - critical data must be inserted first")
    admin = Actor.from_user(admin_user)

    for data in DEBUG_PRODUCTS:
        if users[UserRole.SUPPLIER].products.filter_by(name=data['name']).first() is not None:
            continue
        context = ProductContext.create(supplier, data)
        context.moderate(admin, 'approve')
        summary['products'] += 1

    logger.info(f"Debug data inserted: {summary}")
    return summary
