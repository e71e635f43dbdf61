from __future__ import annotations


class OrderDomainError(ValueError):
    http_status = 400


class OrderValidationError(OrderDomainError):
    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class InvalidTransitionError(OrderDomainError):
    def __init__(self, message: str, *, current: str | None = None, requested: str | None = None):
        super().__init__(message)
        self.current = current
        self.requested = requested


class OrderNotFoundError(OrderDomainError):
    http_status = 404


class DraftNotFoundError(OrderNotFoundError):
    pass


class PaintingNotFoundError(OrderNotFoundError):
    pass


class OrderForbiddenError(OrderDomainError):
    http_status = 403


class SecretMismatchError(OrderDomainError):
    http_status = 403


class ConflictError(OrderDomainError):
    http_status = 409
