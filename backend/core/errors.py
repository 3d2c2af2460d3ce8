"""
Stockpoint Error Taxonomy

Domain errors raised by the ledger, transfer engine and alert tracker.
The API layer turns every subclass into a structured response:

    {"error": <code>, "message": <human readable>, **extra}
"""

from typing import Any


class StockpointError(Exception):
    """Base class for errors reported to API clients."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.extra}


class ValidationError(StockpointError):
    """Malformed or missing input, raised before the store is touched."""

    code = "validation_error"
    status_code = 422


class InvalidQuantityError(ValidationError):
    pass


class NotFoundError(StockpointError):
    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: Any = None, message: str | None = None):
        if message is None:
            message = f"{resource.capitalize()} not found"
            if resource_id is not None:
                message = f"{resource.capitalize()} with ID {resource_id} does not exist"
        super().__init__(message, resource=resource)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(StockpointError):
    """Duplicate SKU/code, duplicate stock record, or blocked delete."""

    code = "conflict"
    status_code = 409


class InsufficientStockError(StockpointError):
    code = "insufficient_stock"
    status_code = 400

    def __init__(self, available: int, requested: int, message: str | None = None):
        if message is None:
            message = f"Only {available} units available. Cannot move {requested} units."
        super().__init__(message, available=available, requested=requested)
        self.available = available
        self.requested = requested


class InternalError(StockpointError):
    code = "internal_error"
    status_code = 500
