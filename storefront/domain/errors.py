# storefront/domain/errors.py
"""Error taxonomy of the order placement core.

Every failure a caller can observe is a ``StorefrontError`` with a stable
``ErrorCode``. The HTTP layer maps codes to status codes in
``storefront.api.error_handlers``.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    VARIANT_NOT_FOUND = "VARIANT_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    STATUS_SEED_FAILURE = "STATUS_SEED_FAILURE"


class StorefrontError(Exception):
    """Base class for all errors raised by the services."""

    code = ErrorCode.STORAGE_FAILURE

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "context": self.context,
            }
        }


class InvalidArgument(StorefrontError):
    code = ErrorCode.INVALID_ARGUMENT


class VariantNotFound(InvalidArgument):
    """The weight id does not belong to the named product."""

    code = ErrorCode.VARIANT_NOT_FOUND


class NotFound(StorefrontError):
    code = ErrorCode.NOT_FOUND


class ProductNotFound(NotFound):
    code = ErrorCode.PRODUCT_NOT_FOUND


class InsufficientStock(StorefrontError):
    code = ErrorCode.INSUFFICIENT_STOCK


class DuplicateRequest(StorefrontError):
    code = ErrorCode.DUPLICATE_REQUEST


class ConcurrentModification(StorefrontError):
    code = ErrorCode.CONCURRENT_MODIFICATION


class StorageFailure(StorefrontError):
    code = ErrorCode.STORAGE_FAILURE


class StatusSeedFailure(StorefrontError):
    """Purchase committed, but its order status row could not be written.

    The purchase is durable; ``context["purchase_id"]`` identifies it.
    """

    code = ErrorCode.STATUS_SEED_FAILURE

    def __init__(self, purchase_id: int):
        super().__init__(
            f"Purchase {purchase_id} was created but its order status could not be initialized",
            context={"purchase_id": purchase_id},
        )
        self.purchase_id = purchase_id
