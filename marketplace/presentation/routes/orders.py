"""
Order routes: direct purchase, lifecycle transitions, payment, tracking and invoices
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from marketplace.data.core.user import UserRole
from marketplace.buisness.ordering.order_context import OrderContext
from marketplace.buisness.ordering.order_factory import OrderFactory
from marketplace.buisness.ordering.status_display import order_timeline
from marketplace.logger import get_logger
from marketplace.presentation.routes.helpers import (
    approved_supplier_required, current_actor, json_body, loggable_body, parse_datetime, roles_required,
)
from marketplace.services.order_service import OrderService

logger = get_logger("marketplace.routes.orders")

bp = Blueprint('orders', __name__)


@bp.route('', methods=['POST'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def place_order():
    data = json_body()
    logger.debug(f"Place order request: {loggable_body()}")
    order = OrderFactory().place_direct(
        current_actor(),
        product_id=data.get('product_id'),
        quantity=data.get('quantity'),
        payment_method=data.get('payment_method'),
        delivery=data.get('delivery'),
        buyer_note=data.get('note'),
    )
    return jsonify({'message': 'Order placed successfully', 'order': order.to_dict()}), 201


@bp.route('/mine', methods=['GET'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def my_orders():
    orders = OrderService.scoped_query(current_actor()).all()
    return jsonify({'orders': [order.to_dict() for order in orders]})


@bp.route('/supplier', methods=['GET'])
@login_required
@roles_required(UserRole.SUPPLIER)
def supplier_orders():
    orders = OrderService.supplier_orders(current_actor(), status=request.args.get('status'))
    return jsonify({'orders': [order.to_dict() for order in orders]})


@bp.route('/admin', methods=['GET'])
@login_required
@roles_required(UserRole.ADMIN)
def admin_orders():
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config.get('ORDERS_PER_PAGE', 20), type=int)
    orders_page, filters = OrderService.get_admin_list_data(request, page=page, per_page=per_page)
    return jsonify({
        'orders': [order.to_dict() for order in orders_page.items],
        'pagination': {
            'page': orders_page.page,
            'per_page': orders_page.per_page,
            'total': orders_page.total,
            'pages': orders_page.pages,
        },
        'filters': filters,
    })


@bp.route('/tracking', methods=['GET'])
@login_required
def tracking_list():
    return jsonify({'orders': OrderService.tracking_list(current_actor())})


@bp.route('/invoices', methods=['GET'])
@login_required
def invoice_list():
    return jsonify({'invoices': OrderService.invoice_list(current_actor())})


@bp.route('/<int:order_id>', methods=['GET'])
@login_required
def order_detail(order_id):
    order = OrderService.get_viewable(order_id, current_actor())
    return jsonify({'order': order.to_dict(include_logs=True)})


@bp.route('/<int:order_id>/status', methods=['GET'])
@login_required
def order_status(order_id):
    order = OrderService.get_viewable(order_id, current_actor())
    return jsonify(OrderService.status_view(order))


@bp.route('/<int:order_id>/timeline', methods=['GET'])
@login_required
def order_timeline_view(order_id):
    order = OrderService.get_viewable(order_id, current_actor())
    return jsonify({'reference': order.reference, 'timeline': order_timeline(order)})


@bp.route('/<int:order_id>/activity-logs', methods=['GET'])
@login_required
def order_activity_logs(order_id):
    order = OrderService.get_viewable(order_id, current_actor())
    return jsonify({'activity_logs': [log.to_dict() for log in order.activity_logs]})


@bp.route('/<int:order_id>/tracking', methods=['GET'])
@login_required
def order_tracking(order_id):
    order = OrderService.get_viewable(order_id, current_actor())
    return jsonify(OrderService.tracking_details(order))


@bp.route('/<int:order_id>/invoice', methods=['GET'])
@login_required
def order_invoice(order_id):
    order = OrderService.get_viewable(order_id, current_actor())
    return jsonify(OrderService.invoice_summary(order))


@bp.route('/<int:order_id>/accept', methods=['POST'])
@login_required
@approved_supplier_required
def accept_order(order_id):
    order = OrderContext.load(order_id).accept(current_actor(), note=json_body().get('note'))
    return jsonify({'message': 'Order accepted', 'order': order.to_dict()})


@bp.route('/<int:order_id>/reject', methods=['POST'])
@login_required
@approved_supplier_required
def reject_order(order_id):
    order = OrderContext.load(order_id).reject(current_actor(), reason=json_body().get('reason'))
    return jsonify({'message': 'Order rejected', 'order': order.to_dict()})


@bp.route('/<int:order_id>/ship', methods=['POST'])
@login_required
@approved_supplier_required
def ship_order(order_id):
    data = json_body()
    order = OrderContext.load(order_id).ship(
        current_actor(),
        tracking_number=data.get('tracking_number'),
        expected_delivery_date=parse_datetime(data.get('expected_delivery_date'), 'expected_delivery_date'),
    )
    return jsonify({'message': 'Order marked as shipped', 'order': order.to_dict()})


@bp.route('/<int:order_id>/deliver', methods=['POST'])
@login_required
@approved_supplier_required
def deliver_order(order_id):
    order = OrderContext.load(order_id).deliver(current_actor())
    return jsonify({'message': 'Order delivered', 'order': order.to_dict()})


@bp.route('/<int:order_id>/cancel', methods=['POST'])
@login_required
def cancel_order(order_id):
    order = OrderContext.load(order_id).cancel(current_actor(), reason=json_body().get('reason'))
    return jsonify({'message': 'Order cancelled', 'order': order.to_dict()})


@bp.route('/<int:order_id>/payment-proof', methods=['POST'])
@login_required
def upload_payment_proof(order_id):
    data = json_body()
    logger.debug(f"Payment proof upload for order {order_id}: {loggable_body()}")
    order = OrderContext.load(order_id).upload_payment_proof(current_actor(), data.get('proof_reference'))
    return jsonify({'message': 'Payment proof uploaded successfully', 'order': order.to_dict()})


@bp.route('/<int:order_id>/payment/approve', methods=['POST'])
@login_required
def approve_payment(order_id):
    order = OrderContext.load(order_id).approve_payment(current_actor())
    return jsonify({'message': 'Payment approved', 'order': order.to_dict()})


@bp.route('/<int:order_id>/payment/reject', methods=['POST'])
@login_required
def reject_payment(order_id):
    order = OrderContext.load(order_id).reject_payment(current_actor(), reason=json_body().get('reason'))
    return jsonify({'message': 'Payment rejected. Buyer needs to re-upload proof.', 'order': order.to_dict()})
