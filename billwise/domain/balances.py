"""Account balance effects of transactions"""

from datetime import date
from typing import Sequence

from billwise.domain.models import Account, AccountType, Transaction
from billwise.utils.date_utils import coerce_date


def balance_impact(account_type: AccountType, amount_cents: int) -> int:
    """
    Signed change a transaction applies to its account.

    Transactions are positive for money out. Debit accounts lose that much;
    credit accounts track credit in use, so their balance grows.
    """
    if account_type == AccountType.CREDIT:
        return amount_cents
    return -amount_cents


def available_credit(account: Account) -> int:
    """Credit limit minus usage for credit accounts; plain balance otherwise"""
    if account.type == AccountType.CREDIT and account.credit_limit_cents is not None:
        return account.credit_limit_cents - account.balance_cents
    return account.balance_cents


def recalculate_balance(account: Account, transactions: Sequence[Transaction], baseline_cents: int | None = None) -> int:
    """Replay an account's transactions in date order on top of a baseline"""
    balance = account.balance_cents if baseline_cents is None else baseline_cents
    own = [t for t in transactions if t.payment_method_id == account.id]
    # Undated rows sort first
    own.sort(key=lambda t: coerce_date(t.date) or date.min)
    for tx in own:
        balance += balance_impact(account.type, tx.amount_cents)
    return balance
