import asyncio
import logging

import stripe

import config
from exceptions.payment import InvalidPaymentAmountException, PaymentIntentException, PaymentLookupException
from models.customer import PaymentIntentDTO
from services.pricing import PricingService

logger = logging.getLogger(__name__)


class PaymentService:
    """Thin wrapper around the Stripe PaymentIntent API."""

    @staticmethod
    async def create_payment_intent(amount: float, order_number: str, customer_email: str) -> PaymentIntentDTO:
        """
        Ask Stripe for a payment intent covering the order total.

        Args:
            amount: Total in kroner; converted to øre before sending
            order_number: Stored in the intent metadata as orderId
            customer_email: Stored in the intent metadata as customerEmail

        Returns:
            PaymentIntentDTO with the client secret the browser confirms the payment with

        Raises:
            InvalidPaymentAmountException: amount is zero or negative
            PaymentIntentException: Stripe refused the request or could not be reached
        """
        if amount <= 0:
            raise InvalidPaymentAmountException(amount, config.CURRENCY.value)

        minor_amount = PricingService.to_minor_units(amount)
        stripe.api_key = config.STRIPE_SECRET_KEY
        try:
            # stripe-python is blocking
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=minor_amount,
                currency=config.CURRENCY.stripe_code,
                automatic_payment_methods={"enabled": True},
                metadata={
                    "orderId": order_number,
                    "customerEmail": customer_email,
                },
            )
        except stripe.StripeError as e:
            logger.error(f"[Payment] Stripe error for order {order_number}: {e}")
            raise PaymentIntentException(order_number, minor_amount, str(e)) from e

        logger.info(f"[Payment] Created payment intent {intent['id']} for order {order_number} ({minor_amount} øre)")
        return PaymentIntentDTO(
            id=intent["id"],
            client_secret=intent["client_secret"],
            amount=minor_amount,
            currency=config.CURRENCY.stripe_code
        )

    @staticmethod
    async def get_payment_intent_status(payment_intent_id: str, order_number: str) -> str:
        """
        Current Stripe status of an intent ("succeeded", "processing", "requires_payment_method", ...).

        Raises:
            PaymentLookupException: Stripe refused the request or could not be reached
        """
        stripe.api_key = config.STRIPE_SECRET_KEY
        try:
            intent = await asyncio.to_thread(stripe.PaymentIntent.retrieve, payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"[Payment] Stripe lookup of {payment_intent_id} for order {order_number} failed: {e}")
            raise PaymentLookupException(order_number, str(e)) from e
        logger.debug(f"[Payment] Intent {payment_intent_id} of order {order_number} is {intent['status']}")
        return intent["status"]
