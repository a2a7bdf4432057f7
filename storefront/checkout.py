"""Checkout and payment-callback flow.

`/checkout` only renders; the gateway hosts the payment and sends the
customer back to `/checkout/verify?reference=...`, where `complete_payment`
confirms the reference and turns the session cart into a PAID order.
"""
import logging
from typing import MutableMapping, NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import cart, crud
from .exceptions import PaymentException
from .payments import PaystackVerifier

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


class CheckoutView(NamedTuple):
    lines: cart.Cart
    total: int
    public_key: str


class PaymentOutcome(NamedTuple):
    ok: bool
    reference: Optional[str] = None
    order_id: Optional[int] = None
    # True when there was nothing to pay for (empty cart, no prior order)
    empty: bool = False


def prepare_checkout(session: MutableMapping, public_key: str) -> CheckoutView | None:
    """Build the checkout page model, or None when the cart is empty."""
    lines = cart.load(session)
    if not lines:
        return None
    return CheckoutView(lines=lines, total=cart.total(lines), public_key=public_key)


async def complete_payment(
    db: Session,
    session: MutableMapping,
    reference: str,
    verifier: PaystackVerifier,
) -> PaymentOutcome:
    """Verify `reference` and persist the session cart as a PAID order.

    Any verification or datastore failure is logged and reported as a failed
    outcome; nothing is retried.
    """
    existing = crud.get_order_by_reference(db, reference)
    if existing is not None:
        # Callback reloaded after the order was written
        return PaymentOutcome(ok=True, reference=reference, order_id=existing.id)

    lines = cart.load(session)
    if not lines:
        return PaymentOutcome(ok=False, reference=reference, empty=True)

    try:
        if not await verifier.verify(reference):
            return PaymentOutcome(ok=False, reference=reference)
        order = crud.create_paid_order(db, lines, session.get(SESSION_USER_KEY), reference)
    except PaymentException as e:
        logger.error("Payment verification failed: %r", e)
        return PaymentOutcome(ok=False, reference=reference)
    except SQLAlchemyError:
        logger.exception("Could not record order for payment %s", reference)
        return PaymentOutcome(ok=False, reference=reference)
    except Exception:
        logger.exception("Unexpected error completing payment %s", reference)
        return PaymentOutcome(ok=False, reference=reference)

    cart.store(session, cart.clear(lines))
    logger.info("Order %s paid (reference=%s, total=%s)", order.id, reference, order.total)
    return PaymentOutcome(ok=True, reference=reference, order_id=order.id)
