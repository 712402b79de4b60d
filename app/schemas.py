from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from app.models import OrderStatus, PaymentStatus, PosCommandType, ShiftStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# POS-side identifiers; they key the upserts.
PosKey = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class PosStaffData(CamelModel):
    pos_staff_id: PosKey
    name: str | None = None
    pin: str | None = None


class PosTableData(CamelModel):
    external_id: PosKey
    number: str | None = None
    capacity: int | None = None


class PosShiftData(CamelModel):
    external_id: PosKey
    pos_name: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: ShiftStatus | None = None


class PosOrderData(CamelModel):
    external_id: PosKey
    order_number: PosKey
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    subtotal: Decimal | None = None
    tax_amount: Decimal | None = None
    discount_amount: Decimal | None = None
    tip_amount: Decimal | None = None
    total: Decimal | None = None
    completed_at: datetime | None = None
    created_at: datetime
    pos_raw_data: dict | None = None


class PosOrderPayload(CamelModel):
    venue_id: str
    order_data: PosOrderData
    staff_data: PosStaffData | None = None
    table_data: PosTableData | None = None
    shift_data: PosShiftData | None = None


class HeartbeatPayload(CamelModel):
    venue_id: str
    instance_id: str
    producer_version: str | None = None
    timestamp: datetime | None = None


class EnqueueCommandPayload(CamelModel):
    venue_id: str
    entity_type: str
    entity_id: str
    command_type: PosCommandType
    payload: dict = Field(default_factory=dict)


class ClaimCommandsPayload(CamelModel):
    limit: int = Field(default=10, gt=0, le=100)


class CommandAttemptPayload(CamelModel):
    success: bool
    error_message: str | None = None
    retryable: bool = False


class StaffSignInPayload(CamelModel):
    pin: str = Field(min_length=1)
