"""
QuoteNarrator - notification copy for quote negotiation events
"""

from typing import Optional


class QuoteNarrator:
    """Composes (type, title, message) triples sent to the counterparty"""

    @staticmethod
    def requested(quote, buyer_name: Optional[str]):
        return (
            'quote_requested',
            "New Quote Request",
            f"{buyer_name or 'A buyer'} requested a quote for {quote.snapshot_name}",
        )

    @staticmethod
    def countered(quote, supplier_name: Optional[str]):
        return (
            'quote_countered',
            "Supplier Counter Offer",
            f"{supplier_name or 'Supplier'} sent a counter offer of {quote.counter_price} "
            f"for {quote.snapshot_name}",
        )

    @staticmethod
    def accepted(quote, supplier_name: Optional[str]):
        return (
            'quote_accepted',
            "Quote Accepted",
            f"{supplier_name or 'Supplier'} accepted your quote request for {quote.snapshot_name}",
        )

    @staticmethod
    def rejected(quote, supplier_name: Optional[str]):
        return (
            'quote_rejected',
            "Quote Rejected",
            f"{supplier_name or 'Supplier'} rejected your quote request",
        )

    @staticmethod
    def buyer_accepted(quote, buyer_name: Optional[str]):
        return (
            'quote_buyer_accepted',
            "Buyer Accepted Offer",
            f"{buyer_name or 'Buyer'} accepted your offer for {quote.snapshot_name}",
        )

    @staticmethod
    def buyer_cancelled(quote, buyer_name: Optional[str]):
        return (
            'quote_cancelled',
            "Quote Cancelled",
            f"{buyer_name or 'Buyer'} cancelled the quote request",
        )

    @staticmethod
    def converted(quote, order, buyer_name: Optional[str]):
        return (
            'quote_converted',
            "Quote Converted to Order",
            f"{buyer_name or 'Buyer'} converted the quote into an order ({order.reference})",
        )
