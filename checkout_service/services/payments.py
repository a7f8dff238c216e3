"""Payment Initiator"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.checkout import (
    CodMeta,
    GatewayMeta,
    OrderStatus,
    PaymentMeta,
    PaymentMethod,
    PaymentStatus,
    WalletMeta,
)
from .errors import InvalidPaymentMethod, WalletDoesNotCoverTotal
from .gateway_client import GatewayClient

logger = logging.getLogger(__name__)


@dataclass
class PaymentDirective:
    """How the order should be recorded once payment has been initiated"""
    payment_status: PaymentStatus
    order_status: OrderStatus
    payment_meta: PaymentMeta

    @property
    def gateway_order_id(self) -> Optional[str]:
        if isinstance(self.payment_meta, GatewayMeta):
            return self.payment_meta.gateway_order_id
        return None


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class PaymentInitiator:
    """Branches on payment method; only the gateway branch calls out"""

    def __init__(self, gateway: GatewayClient, currency: str = "INR"):
        self.gateway = gateway
        self.currency = currency

    async def initiate(
        self,
        order_number: str,
        total: float,
        method: PaymentMethod,
        user_id: str,
    ) -> PaymentDirective:
        """
        Produce a payment directive for an order that has not been persisted yet.

        Raises:
            GatewayError: gateway order could not be created
            WalletDoesNotCoverTotal: wallet-only payment with an amount still due
            InvalidPaymentMethod: unknown method
        """
        if method == PaymentMethod.GATEWAY:
            if total <= 0:
                # Coupon and wallet already cover everything
                return PaymentDirective(
                    payment_status=PaymentStatus.PAID,
                    order_status=OrderStatus.PAID,
                    payment_meta=GatewayMeta(),
                )

            gateway_order = await self.gateway.create_order(
                amount=to_minor_units(total),
                currency=self.currency,
                receipt=order_number,
                notes={"user_id": user_id, "order_number": order_number},
            )
            logger.info(f"Gateway order {gateway_order.id} created for {order_number}")
            return PaymentDirective(
                payment_status=PaymentStatus.PENDING,
                order_status=OrderStatus.PENDING,
                payment_meta=GatewayMeta(gateway_order_id=gateway_order.id),
            )

        if method == PaymentMethod.WALLET:
            if total > 0:
                raise WalletDoesNotCoverTotal(
                    f"Wallet does not cover the order total; {total:.2f} is still due. "
                    "Wallet balance pays for items and taxes only, not shipping. "
                    "Choose online payment or cash on delivery."
                )
            return PaymentDirective(
                payment_status=PaymentStatus.PAID,
                order_status=OrderStatus.PAID,
                payment_meta=WalletMeta(),
            )

        if method == PaymentMethod.COD:
            return PaymentDirective(
                payment_status=PaymentStatus.PENDING,
                order_status=OrderStatus.PENDING,
                payment_meta=CodMeta(),
            )

        raise InvalidPaymentMethod(f"Unsupported payment method: {method}")
