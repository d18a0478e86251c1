"""SQLAlchemy ORM models - the single definition of the persisted schema"""

import uuid
from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class AccountRecord(Base):
    """Bank account, credit card or loan"""

    __tablename__ = "accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bank = Column(Text, nullable=False)
    classification = Column(Text, nullable=False, index=True)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    type = Column(Text, nullable=False)
    credit_limit_cents = Column(BigInteger, nullable=True)
    billing_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    savings_jars = relationship("SavingsJarRecord", back_populates="account", cascade="all, delete-orphan")


class BillerRecord(Base):
    """Recurring monthly bill"""

    __tablename__ = "billers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, index=True)
    due_day = Column(Integer, nullable=False)
    expected_amount_cents = Column(BigInteger, nullable=False)
    timing = Column(Text, nullable=False)
    activation_month = Column(Integer, nullable=False)
    activation_year = Column(Integer, nullable=False)
    deactivation_month = Column(Integer, nullable=True)
    deactivation_year = Column(Integer, nullable=True)
    status = Column(Text, nullable=False, default="active", index=True)
    linked_account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    schedules = relationship("PaymentScheduleRecord", back_populates="biller", cascade="all, delete-orphan")


class InstallmentRecord(Base):
    """Fixed-term loan"""

    __tablename__ = "installments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    total_amount_cents = Column(BigInteger, nullable=False)
    monthly_amount_cents = Column(BigInteger, nullable=False)
    term_months = Column(Integer, nullable=False)
    paid_amount_cents = Column(BigInteger, nullable=False, default=0)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    start_date = Column(Date, nullable=True)
    timing = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    schedules = relationship("PaymentScheduleRecord", back_populates="installment", cascade="all, delete-orphan")


class PaymentScheduleRecord(Base):
    """One billing period of a biller or installment"""

    __tablename__ = "payment_schedules"
    __table_args__ = (
        CheckConstraint(
            "(biller_id IS NOT NULL AND installment_id IS NULL) OR (biller_id IS NULL AND installment_id IS NOT NULL)",
            name="payment_schedules_owner_check",
        ),
        UniqueConstraint("biller_id", "month", "year", name="unique_biller_month_year"),
        UniqueConstraint("installment_id", "month", "year", name="unique_installment_month_year"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    biller_id = Column(UUID(as_uuid=True), ForeignKey("billers.id", ondelete="CASCADE"), nullable=True, index=True)
    installment_id = Column(
        UUID(as_uuid=True), ForeignKey("installments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    payment_number = Column(Integer, nullable=True)
    expected_amount_cents = Column(BigInteger, nullable=False)
    amount_paid_cents = Column(BigInteger, nullable=True)
    date_paid = Column(Date, nullable=True)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    receipt = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    biller = relationship("BillerRecord", back_populates="schedules")
    installment = relationship("InstallmentRecord", back_populates="schedules")
    # No delete cascade: removing a schedule nulls payment_schedule_id on its transactions
    transactions = relationship("TransactionRecord", back_populates="schedule")


class TransactionRecord(Base):
    """Ledger entry; positive amount = money out"""

    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    payment_method_id = Column(
        UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    payment_schedule_id = Column(
        UUID(as_uuid=True), ForeignKey("payment_schedules.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    schedule = relationship("PaymentScheduleRecord", back_populates="transactions")


class SavingsJarRecord(Base):
    __tablename__ = "savings_jars"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    current_balance_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("AccountRecord", back_populates="savings_jars")


class BudgetSetupRecord(Base):
    """Saved budget for a half-month period"""

    __tablename__ = "budget_setups"
    __table_args__ = (UniqueConstraint("month", "year", "timing", name="unique_budget_period"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    timing = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="Saved")
    projected_salary_cents = Column(BigInteger, nullable=False)
    actual_salary_cents = Column(BigInteger, nullable=True)
    total_amount_cents = Column(BigInteger, nullable=False, default=0)
    items = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TrashRecord(Base):
    """Snapshot of a soft-deleted entity"""

    __tablename__ = "trash"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_type = Column(Text, nullable=False, index=True)
    original_id = Column(UUID(as_uuid=True), nullable=False)
    payload = Column(JSON, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
