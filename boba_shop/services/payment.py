from boba_shop.errors import InvalidPaymentClaim
from boba_shop.models.order import OrderStatus, PaymentMethod
from boba_shop.schemas.order import OrderCreate

# Bank transfers are checked by hand, so the customer must quote the transfer reference.
REFERENCE_REQUIRED_METHODS = frozenset({PaymentMethod.CBE})


def validate_payment_claim(order_data: OrderCreate, require_claim: bool) -> PaymentMethod | None:
    """
    Parse and check the customer's payment claim.

    Returns the claimed method, or None when no claim was made and the
    deployment does not require one.
    """
    if order_data.payment_method is None:
        if require_claim:
            raise InvalidPaymentClaim("A payment method is required")
        return None

    try:
        method = PaymentMethod(order_data.payment_method.upper())
    except ValueError:
        raise InvalidPaymentClaim(f"Unknown payment method: {order_data.payment_method}")

    if method in REFERENCE_REQUIRED_METHODS and not order_data.payment_reference:
        raise InvalidPaymentClaim(f"A payment reference is required for {method.value} payments")
    return method


def initial_status(require_claim: bool) -> OrderStatus:
    return OrderStatus.PENDING_VERIFICATION if require_claim else OrderStatus.NEW
