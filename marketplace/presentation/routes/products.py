"""
Product catalog routes
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from marketplace.data.core.user import UserRole
from marketplace.buisness.catalog.product_context import ProductContext
from marketplace.logger import get_logger
from marketplace.presentation.routes.helpers import (
    approved_supplier_required, current_actor, json_body, loggable_body, parse_datetime, roles_required,
)
from marketplace.services.product_service import ProductService

logger = get_logger("marketplace.routes.products")

bp = Blueprint('products', __name__)


def _flag(value):
    if value is None:
        return None
    return value.lower() in ('1', 'true', 'yes')


@bp.route('', methods=['GET'])
def list_products():
    products = ProductService.approved_products(
        category=request.args.get('category'),
        supplier_id=request.args.get('supplier_id', type=int),
        negotiable=_flag(request.args.get('negotiable')),
    )
    return jsonify({'products': [product.to_dict() for product in products]})


@bp.route('/mine', methods=['GET'])
@login_required
@roles_required(UserRole.SUPPLIER)
def my_products():
    products = ProductService.supplier_products(current_actor().id)
    return jsonify({'products': [product.to_dict() for product in products]})


@bp.route('/pending', methods=['GET'])
@login_required
@roles_required(UserRole.ADMIN)
def pending_products():
    return jsonify({'products': [product.to_dict() for product in ProductService.pending_products()]})


@bp.route('/<int:product_id>', methods=['GET'])
def product_detail(product_id):
    actor = current_actor() if current_user.is_authenticated else None
    return jsonify({'product': ProductService.get_visible(product_id, actor).to_dict()})


@bp.route('', methods=['POST'])
@login_required
@approved_supplier_required
def create_product():
    logger.debug(f"Create product request: {loggable_body()}")
    context = ProductContext.create(current_actor(), json_body())
    return jsonify({'message': 'Product submitted for approval', 'product': context.product.to_dict()}), 201


@bp.route('/<int:product_id>', methods=['PUT'])
@login_required
@approved_supplier_required
def update_product(product_id):
    product = ProductContext(product_id=product_id).update(current_actor(), json_body())
    return jsonify({'message': 'Product updated and sent for re-approval', 'product': product.to_dict()})


@bp.route('/<int:product_id>/moderate', methods=['POST'])
@login_required
@roles_required(UserRole.ADMIN)
def moderate_product(product_id):
    data = json_body()
    product = ProductContext(product_id=product_id).moderate(
        current_actor(), data.get('action'), reason=data.get('reason'),
    )
    return jsonify({'message': f"Product {product.status}", 'product': product.to_dict()})


@bp.route('/<int:product_id>/discount', methods=['POST'])
@login_required
@approved_supplier_required
def apply_discount(product_id):
    data = json_body()
    product = ProductContext(product_id=product_id).apply_discount(
        current_actor(),
        data.get('percentage'),
        expires_at=parse_datetime(data.get('expires_at'), 'expires_at'),
    )
    return jsonify({'message': 'Discount applied', 'product': product.to_dict()})


@bp.route('/<int:product_id>/discount', methods=['DELETE'])
@login_required
@approved_supplier_required
def remove_discount(product_id):
    product = ProductContext(product_id=product_id).remove_discount(current_actor())
    return jsonify({'message': 'Discount removed', 'product': product.to_dict()})
