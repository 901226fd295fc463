"""
Cart routes
"""

from decimal import Decimal

from flask import Blueprint, jsonify
from flask_login import login_required

from marketplace.data.core.user import UserRole
from marketplace.buisness.cart.cart_manager import CartManager
from marketplace.logger import get_logger
from marketplace.presentation.routes.helpers import current_actor, json_body, loggable_body, roles_required

logger = get_logger("marketplace.routes.cart")

bp = Blueprint('cart', __name__)


def _cart_payload(manager):
    entries = manager.entries()
    return {
        'items': [entry.to_dict() for entry in entries],
        'supplier_id': entries[0].product.supplier_id if entries else None,
        'total': str(sum((entry.line_total for entry in entries), Decimal('0.00'))),
    }


@bp.route('', methods=['GET'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def view_cart():
    return jsonify(_cart_payload(CartManager(current_actor())))


@bp.route('/items', methods=['POST'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def add_to_cart():
    data = json_body()
    manager = CartManager(current_actor())
    manager.add(data.get('product_id'), data.get('quantity', 1))
    return jsonify(_cart_payload(manager)), 201


@bp.route('/items/<int:product_id>', methods=['PUT'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def update_cart_item(product_id):
    manager = CartManager(current_actor())
    manager.update_quantity(product_id, json_body().get('quantity'))
    return jsonify(_cart_payload(manager))


@bp.route('/items/<int:product_id>', methods=['DELETE'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def remove_cart_item(product_id):
    manager = CartManager(current_actor())
    manager.remove(product_id)
    return jsonify(_cart_payload(manager))


@bp.route('', methods=['DELETE'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def clear_cart():
    removed = CartManager(current_actor()).clear()
    return jsonify({'message': 'Cart cleared', 'removed': removed})


@bp.route('/checkout', methods=['POST'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def checkout():
    data = json_body()
    logger.debug(f"Checkout request: {loggable_body()}")
    order = CartManager(current_actor()).checkout(
        payment_method=data.get('payment_method'),
        delivery=data.get('delivery'),
        buyer_note=data.get('note'),
    )
    return jsonify({'message': 'Order placed successfully', 'order': order.to_dict()}), 201
