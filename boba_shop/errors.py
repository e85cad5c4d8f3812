"""
Order domain errors.

Validation errors are raised before any write and describe the offending
item/group/option using only what the client submitted (menu item id,
option id) plus group names. StorageFailure means the transaction was rolled
back and the whole request can be retried.
"""


class OrderError(Exception):
    """Base class for order errors."""

    code = "ORDER_ERROR"

    def to_detail(self) -> dict:
        return {"error": self.code, "message": str(self)}


class OrderValidationError(OrderError):
    """Client-supplied inconsistency, never retried."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        menu_item_id: int | None = None,
        group: str | None = None,
        option_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.menu_item_id = menu_item_id
        self.group = group
        self.option_id = option_id

    def to_detail(self) -> dict:
        detail = super().to_detail()
        if self.menu_item_id is not None:
            detail["menuItemId"] = self.menu_item_id
        if self.group is not None:
            detail["group"] = self.group
        if self.option_id is not None:
            detail["optionId"] = self.option_id
        return detail


class InvalidMenuItem(OrderValidationError):
    code = "INVALID_MENU_ITEM"


class InvalidOption(OrderValidationError):
    code = "INVALID_OPTION"


class TooManySelections(OrderValidationError):
    code = "TOO_MANY_SELECTIONS"


class MissingRequiredGroup(OrderValidationError):
    code = "MISSING_REQUIRED_GROUP"


class InvalidPaymentClaim(OrderValidationError):
    code = "INVALID_PAYMENT_CLAIM"


class AmountTooLarge(OrderValidationError):
    code = "AMOUNT_TOO_LARGE"


class StorageFailure(OrderError):
    """The order transaction could not commit; nothing was persisted."""

    code = "STORAGE_FAILURE"
