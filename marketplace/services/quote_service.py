"""
Quote Service
Read-side queries for quote requests.
"""

from typing import List, Optional

from marketplace.data.quoting.quote_request import QuoteRequest
from marketplace.buisness.core.actor import Actor
from marketplace.buisness.quoting.quote_context import QuoteContext


class QuoteService:
    """Lists and single-quote lookups scoped to the acting user"""

    @staticmethod
    def buyer_quotes(buyer_id: int, status: Optional[str] = None) -> List[QuoteRequest]:
        query = QuoteRequest.query.filter_by(buyer_id=buyer_id)
        if status:
            query = query.filter(QuoteRequest.status == status)
        return query.order_by(QuoteRequest.created_at.desc(), QuoteRequest.id.desc()).all()

    @staticmethod
    def supplier_quotes(supplier_id: int, status: Optional[str] = None) -> List[QuoteRequest]:
        query = QuoteRequest.query.filter_by(supplier_id=supplier_id)
        if status:
            query = query.filter(QuoteRequest.status == status)
        return query.order_by(QuoteRequest.created_at.desc(), QuoteRequest.id.desc()).all()

    @staticmethod
    def get_viewable(quote_id: int, actor: Actor) -> QuoteRequest:
        context = QuoteContext(quote_id=quote_id)
        context.require_viewer(actor)
        return context.quote
