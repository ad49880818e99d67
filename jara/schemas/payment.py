# jara/schemas/payment.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentTxIn(BaseModel):
    """The `data` part of a gateway charge notification; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[Any] = None
    tx_ref: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[Decimal] = None


class PaymentWebhookIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    event: Optional[str] = None
    event_type: Optional[str] = Field(default=None, alias="event.type")
    data: Optional[PaymentTxIn] = None

    # some notifications carry the transaction at the top level
    id: Optional[Any] = None
    tx_ref: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[Decimal] = None

    def is_charge_event(self) -> bool:
        return self.event == "charge.completed" or self.event_type == "CARD_TRANSACTION"

    def transaction(self) -> PaymentTxIn:
        if self.data is not None:
            return self.data
        return PaymentTxIn(id=self.id, tx_ref=self.tx_ref, status=self.status, amount=self.amount)


class PaymentWebhookOut(BaseModel):
    received: bool = True
    result: Optional[str] = None
    order_number: Optional[str] = None
