"""Payment reconciliation engine - decides whether a scheduled obligation has been paid"""

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from billwise.config import settings
from billwise.domain.models import (
    MatchMethod,
    Obligation,
    PaymentSchedule,
    ReconciliationResult,
    ReconciliationStatus,
    ScheduleStatus,
    Transaction,
)
from billwise.utils.date_utils import coerce_date


def name_matches(owner_name: str, transaction_name: str, min_length: int | None = None) -> bool:
    """
    Case-insensitive containment in either direction.

    The contained side must be at least `min_length` characters so that
    short names like "Gas" inside "Las Vegas" don't count.
    """
    if min_length is None:
        min_length = settings.min_name_match_length

    owner = (owner_name or "").strip().lower()
    tx_name = (transaction_name or "").strip().lower()
    if not owner or not tx_name:
        return False

    if len(owner) >= min_length and owner in tx_name:
        return True
    return len(tx_name) >= min_length and tx_name in owner


def amount_matches(amount_cents: int, expected_cents: int, tolerance_cents: int | None = None) -> bool:
    if tolerance_cents is None:
        tolerance_cents = settings.amount_tolerance_cents
    return abs(amount_cents - expected_cents) <= tolerance_cents


def date_matches(value: object, month: int, year: int, grace_days: int | None = None) -> bool:
    """
    Same calendar month, or the year-end carry-over.

    A December obligation may be settled in the first `grace_days` days of
    the following January. No other cross-month match is allowed.
    """
    if grace_days is None:
        grace_days = settings.year_end_grace_days

    tx_date = coerce_date(value)
    if tx_date is None:
        return False

    if tx_date.month == month and tx_date.year == year:
        return True

    return month == 12 and tx_date.year == year + 1 and tx_date.month == 1 and tx_date.day <= grace_days


def classify_amount(
    paid_cents: int,
    expected_cents: int,
    tolerance_cents: int | None = None,
) -> ReconciliationStatus:
    """Map a paid amount to unpaid/partial/paid"""
    if tolerance_cents is None:
        tolerance_cents = settings.amount_tolerance_cents

    if paid_cents <= 0:
        return ReconciliationStatus.UNPAID
    if paid_cents < expected_cents - tolerance_cents:
        return ReconciliationStatus.PARTIAL
    return ReconciliationStatus.PAID


def linked_transactions(schedule_id: Optional[str], transactions: Sequence[Transaction]) -> List[Transaction]:
    if not schedule_id:
        return []
    return [t for t in transactions if t.payment_schedule_id == schedule_id]


def is_fuzzy_candidate(
    obligation: Obligation,
    transaction: Transaction,
    tolerance_cents: int | None = None,
    min_length: int | None = None,
    grace_days: int | None = None,
) -> bool:
    """Legacy heuristic: only unlinked transactions are eligible"""
    if transaction.payment_schedule_id is not None:
        return False
    return (
        name_matches(obligation.owner_name, transaction.name, min_length)
        and amount_matches(transaction.amount_cents, obligation.expected_amount_cents, tolerance_cents)
        and date_matches(transaction.date, obligation.month, obligation.year, grace_days)
    )


def reconcile(
    obligation: Obligation,
    transactions: Sequence[Transaction],
    schedule: Optional[PaymentSchedule] = None,
    tolerance_cents: int | None = None,
    min_length: int | None = None,
    grace_days: int | None = None,
) -> ReconciliationResult:
    """
    Decide paid/partial/unpaid for one obligation.

    Priority (first match wins):
    1. Transactions linked through payment_schedule_id. Authoritative;
       several linked payments are summed.
    2. Fuzzy fallback over unlinked transactions (name, amount, date).
    3. Unpaid. The paid amount falls back to the schedule's persisted
       amount_paid (manual/legacy override), else 0.

    Never raises and never mutates its inputs.
    """
    if tolerance_cents is None:
        tolerance_cents = settings.amount_tolerance_cents

    schedule_id = obligation.schedule_id or (schedule.id if schedule else None)

    linked = linked_transactions(schedule_id, transactions)
    if linked:
        paid = sum(t.amount_cents for t in linked)
        return ReconciliationResult(
            status=classify_amount(paid, obligation.expected_amount_cents, tolerance_cents),
            paid_amount_cents=paid,
            method=MatchMethod.LINKED,
            matched_transaction_id=linked[0].id,
        )

    for tx in transactions:
        if is_fuzzy_candidate(obligation, tx, tolerance_cents, min_length, grace_days):
            return ReconciliationResult(
                status=classify_amount(tx.amount_cents, obligation.expected_amount_cents, tolerance_cents),
                paid_amount_cents=tx.amount_cents,
                method=MatchMethod.FUZZY,
                matched_transaction_id=tx.id,
            )

    override = schedule.amount_paid_cents if schedule and schedule.amount_paid_cents else 0
    return ReconciliationResult(
        status=ReconciliationStatus.UNPAID,
        paid_amount_cents=override,
        method=MatchMethod.MANUAL if override else MatchMethod.NONE,
    )


def _specificity(owner_name: str, transaction_name: str) -> Tuple[int, int]:
    """Exact name equality beats containment; longer contained names beat shorter ones"""
    owner = owner_name.strip().lower()
    tx_name = transaction_name.strip().lower()
    if owner == tx_name:
        return 2, len(owner)
    return 1, min(len(owner), len(tx_name))


def reconcile_batch(
    obligations: Sequence[Obligation],
    transactions: Sequence[Transaction],
    schedules: Optional[Dict[str, PaymentSchedule]] = None,
    tolerance_cents: int | None = None,
    min_length: int | None = None,
    grace_days: int | None = None,
) -> List[ReconciliationResult]:
    """
    Reconcile several obligations that compete for the same transactions.

    An unlinked transaction can settle at most one obligation. When it
    fuzzy-matches several ("Water" and "Water Co" both inside "Water Co"),
    the most specific owner name claims it; ties go to the earlier obligation.
    """
    schedules = schedules or {}

    linked_schedule_ids = {t.payment_schedule_id for t in transactions if t.payment_schedule_id}
    claims: Dict[int, List[Transaction]] = {}

    for tx in transactions:
        if tx.payment_schedule_id is not None:
            continue

        best_index = None
        best_score: Tuple[int, int] = (0, 0)
        for index, obligation in enumerate(obligations):
            if obligation.schedule_id and obligation.schedule_id in linked_schedule_ids:
                continue
            if not is_fuzzy_candidate(obligation, tx, tolerance_cents, min_length, grace_days):
                continue
            score = _specificity(obligation.owner_name, tx.name)
            if best_index is None or score > best_score:
                best_index, best_score = index, score

        if best_index is not None:
            claims.setdefault(best_index, []).append(tx)

    results = []
    for index, obligation in enumerate(obligations):
        schedule = schedules.get(obligation.schedule_id) if obligation.schedule_id else None
        pool = linked_transactions(obligation.schedule_id, transactions) + claims.get(index, [])
        results.append(reconcile(obligation, pool, schedule, tolerance_cents, min_length, grace_days))
    return results


def schedule_status_for(result: ReconciliationResult, due_date: date, today: date | None = None) -> ScheduleStatus:
    """Persistable status for a schedule row; anything not fully paid after its due date is overdue"""
    if today is None:
        today = date.today()

    if result.is_paid:
        return ScheduleStatus.PAID
    if today > due_date:
        return ScheduleStatus.OVERDUE
    if result.is_partial:
        return ScheduleStatus.PARTIAL
    return ScheduleStatus.PENDING
