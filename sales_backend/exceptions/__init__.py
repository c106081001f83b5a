"""Custom exceptions for the sales backend."""

class SalesError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(SalesError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(SalesError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InvalidQuantityError(BusinessLogicError):
    """Raised when an item quantity is above the per-product selling ceiling."""
    def __init__(self, quantity, limit=20):
        message = f"Cannot sell more than {limit} identical items"
        super().__init__(message, payload={'quantity': quantity, 'limit': limit})
        self.quantity = quantity
        self.limit = limit

class ValidationError(SalesError):
    """Raised when input or aggregate validation fails.

    ``errors`` holds ``(field, message)`` pairs in the order they were found.
    """
    def __init__(self, errors, message=None):
        self.errors = list(errors)
        if message is None:
            details = ', '.join(detail for _, detail in self.errors)
            message = f"Validation failed: {details}" if details else "Validation failed"
        super().__init__(message, 400, {'errors': [
            {'field': field, 'detail': detail} for field, detail in self.errors
        ]})
