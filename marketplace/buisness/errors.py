"""
Domain exceptions for marketplace business logic

These exceptions represent business rule violations and are raised by the
business layer. Each kind carries the HTTP status the presentation layer maps
it to and whether retrying the same request may succeed later.
"""


class MarketplaceDomainError(Exception):
    """Base exception for all marketplace domain errors"""
    kind = 'DomainError'
    http_status = 400
    retryable = False

    def __init__(self, message=None):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self):
        return {
            'kind': self.kind,
            'message': self.message,
            'retryable': self.retryable,
        }


class NotFound(MarketplaceDomainError):
    """Raised when the referenced entity does not exist"""
    kind = 'NotFound'
    http_status = 404


class Forbidden(MarketplaceDomainError):
    """Raised when the actor is not allowed to perform the operation"""
    kind = 'Forbidden'
    http_status = 403


class InvalidTransition(MarketplaceDomainError):
    """Raised when an event is not legal from the current status"""
    kind = 'InvalidTransition'
    http_status = 409


class InsufficientStock(MarketplaceDomainError):
    """Raised when available stock cannot cover the requested quantity"""
    kind = 'InsufficientStock'
    http_status = 409
    retryable = True


class InvalidQuantity(MarketplaceDomainError):
    """Raised when a quantity is below one or otherwise out of range"""
    kind = 'InvalidQuantity'
    http_status = 400


class InvalidPrice(MarketplaceDomainError):
    """Raised when a price or discount is out of range"""
    kind = 'InvalidPrice'
    http_status = 400


class CrossSupplierCart(MarketplaceDomainError):
    """Raised when adding a product from a different supplier than the cart holds"""
    kind = 'CrossSupplierCart'
    http_status = 409


class MissingDeliveryAddress(MarketplaceDomainError):
    """Raised when neither an override nor a factory location gives an address"""
    kind = 'MissingDeliveryAddress'
    http_status = 400
    retryable = True


class NotNegotiable(MarketplaceDomainError):
    """Raised when a quote is requested on a fixed-price product"""
    kind = 'NotNegotiable'
    http_status = 400


class EmptyCart(MarketplaceDomainError):
    """Raised when checking out a cart with no lines"""
    kind = 'EmptyCart'
    http_status = 400
    retryable = True


class InvalidRequest(MarketplaceDomainError):
    """Raised when a payload is missing required fields or has the wrong shape"""
    kind = 'InvalidRequest'
    http_status = 400
