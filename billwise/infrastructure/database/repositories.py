"""Data access layer for budgeting entities"""

import uuid
from dataclasses import asdict
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from billwise.domain.models import (
    Account,
    AccountClassification,
    AccountType,
    Biller,
    BillerCategory,
    BillerStatus,
    BudgetItem,
    BudgetSetup,
    Installment,
    PaymentSchedule,
    SavingsJar,
    ScheduleStatus,
    Timing,
    Transaction,
)
from billwise.infrastructure.database.models import (
    AccountRecord,
    BillerRecord,
    BudgetSetupRecord,
    InstallmentRecord,
    PaymentScheduleRecord,
    SavingsJarRecord,
    TransactionRecord,
    TrashRecord,
)


def as_uuid(value: Any) -> Optional[uuid.UUID]:
    """Parse an id; malformed ids are treated as unknown"""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _str_id(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def snapshot(entity: Any) -> Dict[str, Any]:
    """JSON-safe dict of a domain dataclass, used for trash payloads"""

    def convert(value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, list):
            return [convert(v) for v in value]
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        return value

    return convert(asdict(entity))


def to_account(r: AccountRecord) -> Account:
    return Account(
        id=str(r.id),
        bank=r.bank,
        classification=AccountClassification(r.classification),
        balance_cents=r.balance_cents,
        type=AccountType(r.type),
        credit_limit_cents=r.credit_limit_cents,
        billing_date=r.billing_date,
        due_date=r.due_date,
    )


def to_biller(r: BillerRecord) -> Biller:
    return Biller(
        id=str(r.id),
        name=r.name,
        category=BillerCategory(r.category),
        due_day=r.due_day,
        expected_amount_cents=r.expected_amount_cents,
        timing=Timing(r.timing),
        activation_month=r.activation_month,
        activation_year=r.activation_year,
        status=BillerStatus(r.status),
        deactivation_month=r.deactivation_month,
        deactivation_year=r.deactivation_year,
        linked_account_id=_str_id(r.linked_account_id),
    )


def to_installment(r: InstallmentRecord) -> Installment:
    return Installment(
        id=str(r.id),
        name=r.name,
        total_amount_cents=r.total_amount_cents,
        monthly_amount_cents=r.monthly_amount_cents,
        term_months=r.term_months,
        paid_amount_cents=r.paid_amount_cents or 0,
        account_id=_str_id(r.account_id),
        start_date=r.start_date,
        timing=Timing(r.timing) if r.timing else None,
    )


def to_schedule(r: PaymentScheduleRecord) -> PaymentSchedule:
    return PaymentSchedule(
        id=str(r.id),
        month=r.month,
        year=r.year,
        expected_amount_cents=r.expected_amount_cents,
        biller_id=_str_id(r.biller_id),
        installment_id=_str_id(r.installment_id),
        payment_number=r.payment_number,
        amount_paid_cents=r.amount_paid_cents,
        date_paid=r.date_paid,
        account_id=_str_id(r.account_id),
        receipt=r.receipt,
        status=ScheduleStatus(r.status),
    )


def to_transaction(r: TransactionRecord) -> Transaction:
    return Transaction(
        id=str(r.id),
        name=r.name,
        date=r.date,
        amount_cents=r.amount_cents,
        payment_method_id=_str_id(r.payment_method_id),
        payment_schedule_id=_str_id(r.payment_schedule_id),
    )


def to_savings_jar(r: SavingsJarRecord) -> SavingsJar:
    return SavingsJar(str(r.id), r.name, str(r.account_id), r.current_balance_cents)


def to_budget_setup(r: BudgetSetupRecord) -> BudgetSetup:
    return BudgetSetup(
        id=str(r.id),
        month=r.month,
        year=r.year,
        timing=Timing(r.timing),
        projected_salary_cents=r.projected_salary_cents,
        actual_salary_cents=r.actual_salary_cents,
        status=r.status,
        items=[
            BudgetItem(
                name=item["name"],
                amount_cents=item["amount_cents"],
                category=item.get("category", "Purchases"),
                included=item.get("included", True),
            )
            for item in (r.items or [])
        ],
    )


class AccountRepository:
    """Repository for accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, account: Account) -> Account:
        record = AccountRecord(
            id=as_uuid(account.id) or uuid.uuid4(),
            bank=account.bank,
            classification=account.classification.value,
            balance_cents=account.balance_cents,
            type=account.type.value,
            credit_limit_cents=account.credit_limit_cents,
            billing_date=account.billing_date,
            due_date=account.due_date,
        )
        self.db.add(record)
        self.db.flush()
        return to_account(record)

    def get_record(self, account_id: Any) -> Optional[AccountRecord]:
        key = as_uuid(account_id)
        if key is None:
            return None
        return self.db.query(AccountRecord).filter(AccountRecord.id == key).first()

    def get(self, account_id: Any) -> Optional[Account]:
        record = self.get_record(account_id)
        return to_account(record) if record else None

    def list(self) -> List[Account]:
        return [to_account(r) for r in self.db.query(AccountRecord).order_by(AccountRecord.bank).all()]

    def update(self, account: Account) -> Optional[Account]:
        record = self.get_record(account.id)
        if record is None:
            return None

        record.bank = account.bank
        record.classification = account.classification.value
        record.balance_cents = account.balance_cents
        record.type = account.type.value
        record.credit_limit_cents = account.credit_limit_cents
        record.billing_date = account.billing_date
        record.due_date = account.due_date
        self.db.flush()
        return to_account(record)

    def adjust_balance(self, account_id: Any, delta_cents: int) -> Optional[Account]:
        """Apply a signed balance change; unknown accounts are skipped"""
        record = self.get_record(account_id)
        if record is None:
            return None
        record.balance_cents = record.balance_cents + delta_cents
        self.db.flush()
        return to_account(record)

    def delete(self, account_id: Any) -> Optional[Account]:
        """Remove an account, detaching everything that referenced it"""
        record = self.get_record(account_id)
        if record is None:
            return None

        account = to_account(record)
        key = record.id
        self.db.query(BillerRecord).filter(BillerRecord.linked_account_id == key).update(
            {BillerRecord.linked_account_id: None}, synchronize_session=False
        )
        self.db.query(InstallmentRecord).filter(InstallmentRecord.account_id == key).update(
            {InstallmentRecord.account_id: None}, synchronize_session=False
        )
        self.db.query(TransactionRecord).filter(TransactionRecord.payment_method_id == key).update(
            {TransactionRecord.payment_method_id: None}, synchronize_session=False
        )
        self.db.query(PaymentScheduleRecord).filter(PaymentScheduleRecord.account_id == key).update(
            {PaymentScheduleRecord.account_id: None}, synchronize_session=False
        )
        self.db.delete(record)
        self.db.flush()
        return account


class BillerRepository:
    """Repository for billers"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, biller: Biller) -> Biller:
        record = BillerRecord(
            id=as_uuid(biller.id) or uuid.uuid4(),
            name=biller.name,
            category=biller.category.value,
            due_day=biller.due_day,
            expected_amount_cents=biller.expected_amount_cents,
            timing=biller.timing.value,
            activation_month=biller.activation_month,
            activation_year=biller.activation_year,
            deactivation_month=biller.deactivation_month,
            deactivation_year=biller.deactivation_year,
            status=biller.status.value,
            linked_account_id=as_uuid(biller.linked_account_id),
        )
        self.db.add(record)
        self.db.flush()
        return to_biller(record)

    def get_record(self, biller_id: Any) -> Optional[BillerRecord]:
        key = as_uuid(biller_id)
        if key is None:
            return None
        return self.db.query(BillerRecord).filter(BillerRecord.id == key).first()

    def get(self, biller_id: Any) -> Optional[Biller]:
        record = self.get_record(biller_id)
        return to_biller(record) if record else None

    def list(self, status: Optional[BillerStatus] = None) -> List[Biller]:
        query = self.db.query(BillerRecord)
        if status is not None:
            query = query.filter(BillerRecord.status == status.value)
        return [to_biller(r) for r in query.order_by(BillerRecord.name).all()]

    def update(self, biller: Biller) -> Optional[Biller]:
        record = self.get_record(biller.id)
        if record is None:
            return None

        record.name = biller.name
        record.category = biller.category.value
        record.due_day = biller.due_day
        record.expected_amount_cents = biller.expected_amount_cents
        record.timing = biller.timing.value
        record.activation_month = biller.activation_month
        record.activation_year = biller.activation_year
        record.deactivation_month = biller.deactivation_month
        record.deactivation_year = biller.deactivation_year
        record.status = biller.status.value
        record.linked_account_id = as_uuid(biller.linked_account_id)
        self.db.flush()
        return to_biller(record)

    def delete(self, biller_id: Any) -> Optional[Biller]:
        """Delete a biller; its schedules go with it"""
        record = self.get_record(biller_id)
        if record is None:
            return None
        biller = to_biller(record)
        self.db.delete(record)
        self.db.flush()
        return biller


class InstallmentRepository:
    """Repository for installments"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, installment: Installment) -> Installment:
        record = InstallmentRecord(
            id=as_uuid(installment.id) or uuid.uuid4(),
            name=installment.name,
            total_amount_cents=installment.total_amount_cents,
            monthly_amount_cents=installment.monthly_amount_cents,
            term_months=installment.term_months,
            paid_amount_cents=installment.paid_amount_cents,
            account_id=as_uuid(installment.account_id),
            start_date=installment.start_date,
            timing=installment.timing.value if installment.timing else None,
        )
        self.db.add(record)
        self.db.flush()
        return to_installment(record)

    def get_record(self, installment_id: Any) -> Optional[InstallmentRecord]:
        key = as_uuid(installment_id)
        if key is None:
            return None
        return self.db.query(InstallmentRecord).filter(InstallmentRecord.id == key).first()

    def get(self, installment_id: Any) -> Optional[Installment]:
        record = self.get_record(installment_id)
        return to_installment(record) if record else None

    def list(self, account_id: Any = None) -> List[Installment]:
        query = self.db.query(InstallmentRecord)
        if account_id is not None:
            query = query.filter(InstallmentRecord.account_id == as_uuid(account_id))
        return [to_installment(r) for r in query.order_by(InstallmentRecord.name).all()]

    def update(self, installment: Installment) -> Optional[Installment]:
        record = self.get_record(installment.id)
        if record is None:
            return None

        record.name = installment.name
        record.total_amount_cents = installment.total_amount_cents
        record.monthly_amount_cents = installment.monthly_amount_cents
        record.term_months = installment.term_months
        record.paid_amount_cents = installment.paid_amount_cents
        record.account_id = as_uuid(installment.account_id)
        record.start_date = installment.start_date
        record.timing = installment.timing.value if installment.timing else None
        self.db.flush()
        return to_installment(record)

    def delete(self, installment_id: Any) -> Optional[Installment]:
        record = self.get_record(installment_id)
        if record is None:
            return None
        installment = to_installment(record)
        self.db.delete(record)
        self.db.flush()
        return installment


class PaymentScheduleRepository:
    """Repository for per-period payment schedules"""

    def __init__(self, db: Session):
        self.db = db

    def create_many(self, schedules: Iterable[PaymentSchedule]) -> List[PaymentSchedule]:
        """Insert schedules, skipping periods the owner already has a row for"""
        created = []
        for schedule in schedules:
            biller_id = as_uuid(schedule.biller_id)
            installment_id = as_uuid(schedule.installment_id)
            exists = (
                self.db.query(PaymentScheduleRecord.id)
                .filter(
                    PaymentScheduleRecord.biller_id == biller_id,
                    PaymentScheduleRecord.installment_id == installment_id,
                    PaymentScheduleRecord.month == schedule.month,
                    PaymentScheduleRecord.year == schedule.year,
                )
                .first()
            )
            if exists:
                continue

            record = PaymentScheduleRecord(
                biller_id=biller_id,
                installment_id=installment_id,
                month=schedule.month,
                year=schedule.year,
                payment_number=schedule.payment_number,
                expected_amount_cents=schedule.expected_amount_cents,
                amount_paid_cents=schedule.amount_paid_cents,
                account_id=as_uuid(schedule.account_id),
                status=schedule.status.value,
            )
            self.db.add(record)
            self.db.flush()
            created.append(to_schedule(record))

        return created

    def get_record(self, schedule_id: Any) -> Optional[PaymentScheduleRecord]:
        key = as_uuid(schedule_id)
        if key is None:
            return None
        return self.db.query(PaymentScheduleRecord).filter(PaymentScheduleRecord.id == key).first()

    def get(self, schedule_id: Any) -> Optional[PaymentSchedule]:
        record = self.get_record(schedule_id)
        return to_schedule(record) if record else None

    def list_for_biller(self, biller_id: Any) -> List[PaymentSchedule]:
        records = (
            self.db.query(PaymentScheduleRecord)
            .filter(PaymentScheduleRecord.biller_id == as_uuid(biller_id))
            .order_by(PaymentScheduleRecord.year, PaymentScheduleRecord.month)
            .all()
        )
        return [to_schedule(r) for r in records]

    def list_for_installment(self, installment_id: Any) -> List[PaymentSchedule]:
        records = (
            self.db.query(PaymentScheduleRecord)
            .filter(PaymentScheduleRecord.installment_id == as_uuid(installment_id))
            .order_by(PaymentScheduleRecord.payment_number)
            .all()
        )
        return [to_schedule(r) for r in records]

    def list_for_period(self, month: int, year: int) -> List[PaymentSchedule]:
        records = (
            self.db.query(PaymentScheduleRecord)
            .filter(PaymentScheduleRecord.month == month, PaymentScheduleRecord.year == year)
            .all()
        )
        return [to_schedule(r) for r in records]

    def list_by_status(self, statuses: Iterable[ScheduleStatus]) -> List[PaymentScheduleRecord]:
        values = [s.value for s in statuses]
        return self.db.query(PaymentScheduleRecord).filter(PaymentScheduleRecord.status.in_(values)).all()

    def delete_unpaid(self, biller_id: Any = None, installment_id: Any = None) -> int:
        """Drop an owner's schedules that carry no payment, linked or manually entered"""
        query = self.db.query(PaymentScheduleRecord)
        if biller_id is not None:
            query = query.filter(PaymentScheduleRecord.biller_id == as_uuid(biller_id))
        elif installment_id is not None:
            query = query.filter(PaymentScheduleRecord.installment_id == as_uuid(installment_id))
        else:
            return 0

        removed = 0
        for record in query.all():
            if record.transactions or record.amount_paid_cents:
                continue
            self.db.delete(record)
            removed += 1
        self.db.flush()
        return removed


class TransactionRepository:
    """Repository for ledger transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, transaction: Transaction) -> Transaction:
        record = TransactionRecord(
            name=transaction.name,
            date=transaction.date,
            amount_cents=transaction.amount_cents,
            payment_method_id=as_uuid(transaction.payment_method_id),
            payment_schedule_id=as_uuid(transaction.payment_schedule_id),
        )
        self.db.add(record)
        self.db.flush()
        return to_transaction(record)

    def get_record(self, transaction_id: Any) -> Optional[TransactionRecord]:
        key = as_uuid(transaction_id)
        if key is None:
            return None
        return self.db.query(TransactionRecord).filter(TransactionRecord.id == key).first()

    def get(self, transaction_id: Any) -> Optional[Transaction]:
        record = self.get_record(transaction_id)
        return to_transaction(record) if record else None

    def list(
        self,
        account_id: Any = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Transaction]:
        """Newest first, optionally filtered by account and inclusive date range"""
        query = self.db.query(TransactionRecord)
        if account_id is not None:
            query = query.filter(TransactionRecord.payment_method_id == as_uuid(account_id))
        if start_date is not None:
            query = query.filter(TransactionRecord.date >= start_date)
        if end_date is not None:
            query = query.filter(TransactionRecord.date <= end_date)
        records = query.order_by(TransactionRecord.date.desc(), TransactionRecord.created_at.desc()).all()
        return [to_transaction(r) for r in records]

    def list_for_schedule(self, schedule_id: Any) -> List[Transaction]:
        records = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.payment_schedule_id == as_uuid(schedule_id))
            .order_by(TransactionRecord.date)
            .all()
        )
        return [to_transaction(r) for r in records]

    def list_for_schedules(self, schedule_ids: Iterable[Any]) -> List[Transaction]:
        keys = [k for k in (as_uuid(s) for s in schedule_ids) if k is not None]
        if not keys:
            return []
        records = self.db.query(TransactionRecord).filter(TransactionRecord.payment_schedule_id.in_(keys)).all()
        return [to_transaction(r) for r in records]

    def delete(self, transaction_id: Any) -> Optional[Transaction]:
        record = self.get_record(transaction_id)
        if record is None:
            return None
        transaction = to_transaction(record)
        self.db.delete(record)
        self.db.flush()
        return transaction


class SavingsRepository:
    """Repository for savings jars"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, jar: SavingsJar) -> SavingsJar:
        record = SavingsJarRecord(
            name=jar.name,
            account_id=as_uuid(jar.account_id),
            current_balance_cents=jar.current_balance_cents,
        )
        self.db.add(record)
        self.db.flush()
        return to_savings_jar(record)

    def get_record(self, jar_id: Any) -> Optional[SavingsJarRecord]:
        key = as_uuid(jar_id)
        if key is None:
            return None
        return self.db.query(SavingsJarRecord).filter(SavingsJarRecord.id == key).first()

    def list(self) -> List[SavingsJar]:
        return [to_savings_jar(r) for r in self.db.query(SavingsJarRecord).order_by(SavingsJarRecord.name).all()]

    def update(self, jar: SavingsJar) -> Optional[SavingsJar]:
        record = self.get_record(jar.id)
        if record is None:
            return None
        record.name = jar.name
        record.account_id = as_uuid(jar.account_id)
        record.current_balance_cents = jar.current_balance_cents
        self.db.flush()
        return to_savings_jar(record)

    def delete(self, jar_id: Any) -> bool:
        record = self.get_record(jar_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True


class BudgetSetupRepository:
    """Repository for saved half-month budget setups"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_period(self, month: int, year: int, timing: Timing) -> Optional[BudgetSetup]:
        record = (
            self.db.query(BudgetSetupRecord)
            .filter(
                BudgetSetupRecord.month == month,
                BudgetSetupRecord.year == year,
                BudgetSetupRecord.timing == timing.value,
            )
            .first()
        )
        return to_budget_setup(record) if record else None

    def upsert(self, setup: BudgetSetup) -> BudgetSetup:
        """One setup per (month, year, timing); saving again replaces it"""
        record = (
            self.db.query(BudgetSetupRecord)
            .filter(
                BudgetSetupRecord.month == setup.month,
                BudgetSetupRecord.year == setup.year,
                BudgetSetupRecord.timing == setup.timing.value,
            )
            .first()
        )
        if record is None:
            record = BudgetSetupRecord(month=setup.month, year=setup.year, timing=setup.timing.value)
            self.db.add(record)

        record.status = setup.status
        record.projected_salary_cents = setup.projected_salary_cents
        record.actual_salary_cents = setup.actual_salary_cents
        record.items = [
            {"name": i.name, "amount_cents": i.amount_cents, "category": i.category, "included": i.included}
            for i in setup.items
        ]
        record.total_amount_cents = sum(i.amount_cents for i in setup.items if i.included)
        self.db.flush()
        return to_budget_setup(record)


class TrashRepository:
    """Soft-delete snapshots"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, entity_type: str, original_id: Any, payload: Dict[str, Any]) -> TrashRecord:
        record = TrashRecord(entity_type=entity_type, original_id=as_uuid(original_id), payload=payload)
        self.db.add(record)
        self.db.flush()
        return record

    def get(self, trash_id: Any) -> Optional[TrashRecord]:
        key = as_uuid(trash_id)
        if key is None:
            return None
        return self.db.query(TrashRecord).filter(TrashRecord.id == key).first()

    def list(self, entity_type: Optional[str] = None) -> List[TrashRecord]:
        query = self.db.query(TrashRecord)
        if entity_type:
            query = query.filter(TrashRecord.entity_type == entity_type)
        return query.order_by(TrashRecord.deleted_at.desc()).all()

    def delete(self, trash_id: Any) -> bool:
        record = self.get(trash_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def purge_older_than(self, days: int, now: Optional[datetime] = None) -> int:
        if now is None:
            now = datetime.now(timezone.utc)
        cutoff = now - timedelta(days=days)
        removed = 0
        for record in self.db.query(TrashRecord).all():
            deleted_at = record.deleted_at
            # SQLite returns naive timestamps
            if deleted_at.tzinfo is None:
                deleted_at = deleted_at.replace(tzinfo=timezone.utc)
            if deleted_at < cutoff:
                self.db.delete(record)
                removed += 1
        self.db.flush()
        return removed
