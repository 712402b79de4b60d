from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_id() -> str:
    return uuid4().hex


class Base(DeclarativeBase):
    pass


class VenueType(str, Enum):
    RESTAURANT = 'RESTAURANT'
    BAR = 'BAR'
    CAFE = 'CAFE'
    FOOD_TRUCK = 'FOOD_TRUCK'
    OTHER = 'OTHER'


class StaffRole(str, Enum):
    OWNER = 'OWNER'
    ADMIN = 'ADMIN'
    MANAGER = 'MANAGER'
    WAITER = 'WAITER'
    CASHIER = 'CASHIER'
    KITCHEN = 'KITCHEN'


class ShiftStatus(str, Enum):
    OPEN = 'OPEN'
    CLOSING = 'CLOSING'
    CLOSED = 'CLOSED'


class OrderSource(str, Enum):
    TPV = 'TPV'
    POS = 'POS'
    QR = 'QR'
    WEB = 'WEB'


class OriginSystem(str, Enum):
    AVOQADO = 'AVOQADO'
    POS_SOFTRESTAURANT = 'POS_SOFTRESTAURANT'


class OrderType(str, Enum):
    DINE_IN = 'DINE_IN'
    TAKEOUT = 'TAKEOUT'
    DELIVERY = 'DELIVERY'


class OrderStatus(str, Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    PREPARING = 'PREPARING'
    READY = 'READY'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    DELETED = 'DELETED'


class KitchenStatus(str, Enum):
    PENDING = 'PENDING'
    RECEIVED = 'RECEIVED'
    PREPARING = 'PREPARING'
    READY = 'READY'
    SERVED = 'SERVED'


class PaymentStatus(str, Enum):
    PENDING = 'PENDING'
    PARTIAL = 'PARTIAL'
    PAID = 'PAID'
    REFUNDED = 'REFUNDED'


class SyncStatus(str, Enum):
    PENDING = 'PENDING'
    SYNCING = 'SYNCING'
    SYNCED = 'SYNCED'
    FAILED = 'FAILED'
    NOT_REQUIRED = 'NOT_REQUIRED'


class PaymentMethod(str, Enum):
    CASH = 'CASH'
    CREDIT_CARD = 'CREDIT_CARD'
    DEBIT_CARD = 'DEBIT_CARD'
    OTHER = 'OTHER'


class TransactionStatus(str, Enum):
    PENDING = 'PENDING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'
    REFUNDED = 'REFUNDED'


class ConnectionStatus(str, Enum):
    ONLINE = 'ONLINE'
    OFFLINE = 'OFFLINE'
    NEEDS_RECONCILIATION = 'NEEDS_RECONCILIATION'


class PosCommandType(str, Enum):
    CREATE = 'CREATE'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'
    CANCEL = 'CANCEL'


class PosCommandStatus(str, Enum):
    PENDING = 'PENDING'
    PROCESSING = 'PROCESSING'
    COMPLETED = 'COMPLETED'
    FAILED = 'FAILED'


class Organization(Base):
    __tablename__ = 'organizations'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Venue(Base):
    __tablename__ = 'venues'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    organization_id: Mapped[str] = mapped_column(String(64), ForeignKey('organizations.id'), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    type: Mapped[VenueType] = mapped_column(
        SQLEnum(VenueType, name='venue_type'), nullable=False, default=VenueType.RESTAURANT, server_default='RESTAURANT'
    )
    address: Mapped[str | None] = mapped_column(Text)
    city: Mapped[str | None] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Terminal(Base):
    __tablename__ = 'terminals'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('venues.id', ondelete='SET NULL'))
    serial_number: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Staff(Base):
    __tablename__ = 'staff'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    organization_id: Mapped[str] = mapped_column(String(64), ForeignKey('organizations.id'), nullable=False)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False, default='', server_default='')
    email: Mapped[str | None] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StaffVenue(Base):
    __tablename__ = 'staff_venues'
    __table_args__ = (
        UniqueConstraint('staff_id', 'venue_id', name='staff_venues_staff_venue_uniq'),
        UniqueConstraint('venue_id', 'pos_staff_id', name='staff_venues_venue_pos_staff_uniq'),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    staff_id: Mapped[str] = mapped_column(String(64), ForeignKey('staff.id', ondelete='CASCADE'), nullable=False)
    venue_id: Mapped[str] = mapped_column(String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    role: Mapped[StaffRole] = mapped_column(
        SQLEnum(StaffRole, name='staff_role'), nullable=False, default=StaffRole.WAITER, server_default='WAITER'
    )
    pin_hash: Mapped[str | None] = mapped_column(Text)
    pos_staff_id: Mapped[str | None] = mapped_column(String(128))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Table(Base):
    __tablename__ = 'tables'
    __table_args__ = (
        UniqueConstraint('venue_id', 'number', name='tables_venue_number_uniq'),
        UniqueConstraint('venue_id', 'external_id', name='tables_venue_external_uniq'),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str] = mapped_column(String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    number: Mapped[str] = mapped_column(String(64), nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(128))
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4, server_default='4')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Shift(Base):
    __tablename__ = 'shifts'
    __table_args__ = (
        UniqueConstraint('venue_id', 'external_id', name='shifts_venue_external_uniq'),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str] = mapped_column(String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    staff_id: Mapped[str] = mapped_column(String(64), ForeignKey('staff.id'), nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(128))
    pos_name: Mapped[str | None] = mapped_column(String(128))
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[ShiftStatus] = mapped_column(
        SQLEnum(ShiftStatus, name='shift_status'), nullable=False, default=ShiftStatus.OPEN, server_default='OPEN'
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Order(Base):
    __tablename__ = 'orders'
    __table_args__ = (
        UniqueConstraint('venue_id', 'external_id', name='orders_venue_external_uniq'),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str] = mapped_column(String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(128))
    order_number: Mapped[str] = mapped_column(String(64), nullable=False)
    source: Mapped[OrderSource] = mapped_column(
        SQLEnum(OrderSource, name='order_source'), nullable=False, default=OrderSource.TPV, server_default='TPV'
    )
    origin_system: Mapped[OriginSystem] = mapped_column(
        SQLEnum(OriginSystem, name='origin_system'), nullable=False, default=OriginSystem.AVOQADO, server_default='AVOQADO'
    )
    type: Mapped[OrderType] = mapped_column(
        SQLEnum(OrderType, name='order_type'), nullable=False, default=OrderType.DINE_IN, server_default='DINE_IN'
    )
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name='order_status'), nullable=False, default=OrderStatus.PENDING, server_default='PENDING'
    )
    kitchen_status: Mapped[KitchenStatus] = mapped_column(
        SQLEnum(KitchenStatus, name='kitchen_status'),
        nullable=False,
        default=KitchenStatus.PENDING,
        server_default='PENDING',
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name='payment_status'),
        nullable=False,
        default=PaymentStatus.PENDING,
        server_default='PENDING',
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0'), server_default='0')
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0'), server_default='0')
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal('0'), server_default='0'
    )
    tip_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0'), server_default='0')
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0'), server_default='0')
    pos_raw_data: Mapped[dict | None] = mapped_column(JSON)
    table_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('tables.id', ondelete='SET NULL'))
    shift_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('shifts.id', ondelete='SET NULL'))
    served_by_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('staff.id', ondelete='SET NULL'))
    created_by_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('staff.id', ondelete='SET NULL'))
    sync_status: Mapped[SyncStatus] = mapped_column(
        SQLEnum(SyncStatus, name='sync_status'),
        nullable=False,
        default=SyncStatus.NOT_REQUIRED,
        server_default='NOT_REQUIRED',
    )
    synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Payment(Base):
    __tablename__ = 'payments'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str] = mapped_column(String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    order_id: Mapped[str] = mapped_column(String(64), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    shift_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('shifts.id', ondelete='SET NULL'))
    processed_by_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('staff.id', ondelete='SET NULL'))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tip_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal('0'), server_default='0')
    method: Mapped[PaymentMethod] = mapped_column(SQLEnum(PaymentMethod, name='payment_method'), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(TransactionStatus, name='transaction_status'),
        nullable=False,
        default=TransactionStatus.COMPLETED,
        server_default='COMPLETED',
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PosConnectionStatus(Base):
    __tablename__ = 'pos_connection_statuses'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str] = mapped_column(
        String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False, unique=True
    )
    status: Mapped[ConnectionStatus] = mapped_column(
        SQLEnum(ConnectionStatus, name='pos_connection_state'),
        nullable=False,
        default=ConnectionStatus.OFFLINE,
        server_default='OFFLINE',
    )
    instance_id: Mapped[str | None] = mapped_column(String(128))
    producer_version: Mapped[str | None] = mapped_column(String(64))
    last_heartbeat_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PosCommand(Base):
    __tablename__ = 'pos_commands'

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    venue_id: Mapped[str] = mapped_column(String(64), ForeignKey('venues.id', ondelete='CASCADE'), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    command_type: Mapped[PosCommandType] = mapped_column(SQLEnum(PosCommandType, name='pos_command_type'), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[PosCommandStatus] = mapped_column(
        SQLEnum(PosCommandStatus, name='pos_command_status'),
        nullable=False,
        default=PosCommandStatus.PENDING,
        server_default='PENDING',
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    error_message: Mapped[str | None] = mapped_column(Text)
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    venue_id: Mapped[str | None] = mapped_column(String(64), ForeignKey('venues.id', ondelete='SET NULL'))
    action: Mapped[str] = mapped_column(Text, nullable=False)
    meta: Mapped[dict] = mapped_column('metadata', JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
