import stripe
import logging

from config import settings
from utils.errors import GatewayError

logger = logging.getLogger(__name__)


def _configure():
    if not settings.stripe_secret_key:
        raise GatewayError("Payment gateway is not configured")
    stripe.api_key = settings.stripe_secret_key


def create_order(amount: float, currency: str, receipt: str) -> dict:
    """Open a Stripe Checkout Session for ``amount`` (major units).

    ``receipt`` travels as the session's ``client_reference_id`` and comes back
    from :func:`fetch_order`.
    """
    _configure()
    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": "Doctor appointment"},
                    "unit_amount": int(round(amount * 100)),  # minor units
                },
                "quantity": 1,
            }],
            client_reference_id=receipt,
            metadata={"appointment_id": receipt},
            success_url=f"{settings.frontend_url}/my-appointments?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.frontend_url}/my-appointments",
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe error: {str(e)}")
        raise GatewayError(str(e))

    logger.info(f"Checkout session created successfully: {session.id}")
    return {
        "id": session.id,
        "url": session.url,
        "amount": session.amount_total,
        "currency": session.currency,
        "receipt": session.client_reference_id,
    }


def fetch_order(order_id: str) -> dict:
    _configure()
    try:
        session = stripe.checkout.Session.retrieve(order_id)
    except stripe.StripeError as e:
        logger.error(f"Stripe error: {str(e)}")
        raise GatewayError(str(e))

    return {
        "id": session.id,
        "status": session.payment_status,
        "receipt": session.client_reference_id,
    }
