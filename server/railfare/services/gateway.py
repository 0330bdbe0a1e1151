"""Payment gateway collaborators."""

import logging
import secrets
from abc import ABC, abstractmethod

from ..schemas.common import Money

logger = logging.getLogger(__name__)


class PaymentGateway(ABC):
    """Creates orders at an external payment provider."""

    @abstractmethod
    def create_order(self, amount: Money, receipt: str) -> str:
        """
        Create an order for ``amount``.

        Args:
            amount: Amount in minor units
            receipt: Merchant reference shown on the order (the PNR)

        Returns:
            The gateway order ID
        """


class LocalOrderGateway(PaymentGateway):
    """Issues ``order_<token>`` ids without contacting a provider."""

    def create_order(self, amount: Money, receipt: str) -> str:
        order_id = f"order_{secrets.token_hex(8)}"
        logger.info(
            "Local gateway order created",
            extra={"order_id": order_id, "amount": amount.amount, "currency": amount.currency, "receipt": receipt}
        )
        return order_id
