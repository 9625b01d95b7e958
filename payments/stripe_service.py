import logging

import stripe
from django.conf import settings

from .charges import calculate_charge, to_major_units
from .exceptions import GatewayUnavailable

logger = logging.getLogger(__name__)


def configure_stripe(timeout=None):
    """Bound Stripe network time and turn off its retries; called once from PaymentsConfig.ready"""
    stripe.default_http_client = stripe.RequestsClient(timeout=timeout or settings.STRIPE_TIMEOUT)
    stripe.max_network_retries = 0


class StripeService:
    """Service to prepare client-side card charges through Stripe PaymentIntents"""

    PAYMENT_METHOD_TYPES = ['card']

    def __init__(self, api_key=None, currency=None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.currency = (currency or settings.STRIPE_CURRENCY).lower()

    def create_payment_intent(self, amount, currency=None):
        """
        Create a card PaymentIntent for ``amount``

        Args:
            amount: positive amount in currency subunits (cents)
            currency: ISO currency code, defaults to the configured one

        Returns:
            dict: ``client_secret`` for the client and ``total_price`` in major units

        Raises:
            GatewayUnavailable: Stripe is not configured, unreachable, or refused the request
        """
        currency = (currency or self.currency).lower()
        if not self.api_key:
            logger.error("Stripe secret key not configured")
            raise GatewayUnavailable('Payment gateway is not configured.')

        try:
            logger.info(f"Requesting PaymentIntent for {amount} {currency}")
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                payment_method_types=self.PAYMENT_METHOD_TYPES,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating PaymentIntent: {str(e)}")
            raise GatewayUnavailable(f"Failed to create payment: {e.user_message or str(e)}")

        logger.info(f"PaymentIntent {intent.id} created for {amount} {currency}")
        return {
            'client_secret': intent.client_secret,
            'total_price': to_major_units(amount),
        }


def quote_charge(items, service=None):
    """Price a cart and open a PaymentIntent for it; no ledger writes."""
    amount = calculate_charge(items)
    service = service or StripeService()
    quote = service.create_payment_intent(amount)
    quote['amount'] = amount
    return quote
