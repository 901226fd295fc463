"""
Quote routes: request, supplier response, buyer response and conversion to an order
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required

from marketplace.data.core.user import UserRole
from marketplace.buisness.quoting.quote_context import QuoteContext
from marketplace.logger import get_logger
from marketplace.presentation.routes.helpers import (
    approved_supplier_required, current_actor, json_body, loggable_body, roles_required,
)
from marketplace.services.quote_service import QuoteService

logger = get_logger("marketplace.routes.quotes")

bp = Blueprint('quotes', __name__)


@bp.route('', methods=['POST'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def request_quote():
    data = json_body()
    logger.debug(f"Quote request: {loggable_body()}")
    context = QuoteContext.request(
        current_actor(),
        product_id=data.get('product_id'),
        quantity=data.get('quantity'),
        notes=data.get('notes'),
    )
    return jsonify({'message': 'Quote request sent', 'quote': context.quote.to_dict()}), 201


@bp.route('/mine', methods=['GET'])
@login_required
@roles_required(UserRole.MANUFACTURER)
def my_quotes():
    quotes = QuoteService.buyer_quotes(current_actor().id, status=request.args.get('status'))
    return jsonify({'quotes': [quote.to_dict() for quote in quotes]})


@bp.route('/received', methods=['GET'])
@login_required
@roles_required(UserRole.SUPPLIER)
def received_quotes():
    quotes = QuoteService.supplier_quotes(current_actor().id, status=request.args.get('status'))
    return jsonify({'quotes': [quote.to_dict() for quote in quotes]})


@bp.route('/<int:quote_id>', methods=['GET'])
@login_required
def quote_detail(quote_id):
    quote = QuoteService.get_viewable(quote_id, current_actor())
    return jsonify({'quote': quote.to_dict()})


@bp.route('/<int:quote_id>/respond', methods=['POST'])
@login_required
@approved_supplier_required
def respond_to_quote(quote_id):
    data = json_body()
    quote = QuoteContext.load(quote_id).respond(
        current_actor(),
        action=data.get('action'),
        proposed_price=data.get('proposed_price'),
        minimum_qty=data.get('minimum_qty'),
        message=data.get('message'),
    )
    return jsonify({'message': f"Quote {quote.status}", 'quote': quote.to_dict()})


@bp.route('/<int:quote_id>/buyer-action', methods=['POST'])
@login_required
def buyer_quote_action(quote_id):
    quote = QuoteContext.load(quote_id).buyer_action(current_actor(), json_body().get('action'))
    return jsonify({'message': f"Quote {quote.status}", 'quote': quote.to_dict()})


@bp.route('/<int:quote_id>/convert', methods=['POST'])
@login_required
def convert_quote(quote_id):
    data = json_body()
    context = QuoteContext.load(quote_id)
    order = context.convert_to_order(
        current_actor(),
        payment_method=data.get('payment_method'),
        delivery=data.get('delivery'),
        buyer_note=data.get('note'),
    )
    return jsonify({
        'message': 'Quote converted to order',
        'quote': context.quote.to_dict(),
        'order': order.to_dict(),
    }), 201
