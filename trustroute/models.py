import uuid

from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, Date, DateTime, ForeignKey, Index, Numeric, JSON,
    UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from trustroute.database import Base

# SQLite only autoincrements INTEGER primary keys
PK = BigInteger().with_variant(Integer, "sqlite")

def _new_booking_id() -> str:
    return str(uuid.uuid4())

# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(PK, primary_key=True, index=True)
    name = Column(String(255))
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone_number = Column(String(20))
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="user")

# ================================
# Operators & Refund Policies
# ================================
class BusOperator(Base):
    __tablename__ = "bus_operators"

    id = Column(PK, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    refund_policies = relationship("RefundPolicy", back_populates="operator", order_by="RefundPolicy.version")
    bookings = relationship("Booking", back_populates="operator")

class RefundPolicy(Base):
    __tablename__ = "refund_policies"
    __table_args__ = (UniqueConstraint("operator_id", "version", name="uq_refund_policy_version"),)

    id = Column(PK, primary_key=True, index=True)
    operator_id = Column(BigInteger, ForeignKey("bus_operators.id"), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)
    is_current = Column(Boolean, nullable=False, default=True)
    rules = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    operator = relationship("BusOperator", back_populates="refund_policies")
    bookings = relationship("Booking", back_populates="policy")

# ================================
# Bookings & Refunds
# ================================
class Booking(Base):
    __tablename__ = "bookings"
    # A seat is held by at most one confirmed booking per operator and travel day
    __table_args__ = (
        Index(
            "uq_booking_confirmed_seat",
            "operator_id", "travel_day", "seat_number",
            unique=True,
            sqlite_where=text("status = 'CONFIRMED'"),
            postgresql_where=text("status = 'CONFIRMED'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=_new_booking_id)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    operator_id = Column(BigInteger, ForeignKey("bus_operators.id"), nullable=False)
    policy_id = Column(BigInteger, ForeignKey("refund_policies.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="CONFIRMED")
    seat_number = Column(String(10))
    passenger_name = Column(String(255))
    route = Column(String(255))
    travel_date = Column(DateTime(timezone=True))
    travel_day = Column(Date)
    departure_time = Column(String(20))
    cancelled_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="bookings")
    operator = relationship("BusOperator", back_populates="bookings")
    policy = relationship("RefundPolicy", back_populates="bookings")
    refund_transaction = relationship("RefundTransaction", back_populates="booking", uselist=False)

class RefundTransaction(Base):
    __tablename__ = "refund_transactions"

    id = Column(PK, primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), unique=True, nullable=False)
    refund_amount = Column(Numeric(10, 2), nullable=False)
    deduction_total = Column(Numeric(10, 2), nullable=False)
    breakdown = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, default="INITIATED")
    timeline = Column(JSON, nullable=False, default=list)
    cancellation_slot = Column(String(255))
    initiated_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="refund_transaction")
