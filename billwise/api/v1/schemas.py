"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, model_validator
import datetime as dt
from typing import Any, Dict, List, Optional

from billwise.domain.models import (
    AccountClassification,
    AccountType,
    BillerCategory,
    BillerStatus,
    MatchMethod,
    OwnerKind,
    ReconciliationStatus,
    ScheduleStatus,
    Timing,
)


class AccountCreate(BaseModel):
    """Request body for POST/PUT /v1/accounts"""

    bank: str = Field(..., min_length=1)
    classification: AccountClassification
    type: AccountType
    balance_cents: int = 0
    credit_limit_cents: Optional[int] = Field(None, ge=0)
    billing_date: Optional[dt.date] = Field(None, description="Statement date; its day drives billing cycles")
    due_date: Optional[dt.date] = None


class AccountResponse(BaseModel):
    id: str
    bank: str
    classification: AccountClassification
    type: AccountType
    balance_cents: int
    credit_limit_cents: Optional[int] = None
    available_credit_cents: int
    billing_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None


class CycleResponse(BaseModel):
    """One statement cycle of a credit account"""

    start_date: dt.date
    end_date: dt.date
    label: str
    total_amount_cents: int
    transaction_count: int


class BillerCreate(BaseModel):
    """Request body for POST/PUT /v1/billers"""

    name: str = Field(..., min_length=1)
    category: BillerCategory
    due_day: int = Field(..., ge=1, le=31)
    expected_amount_cents: int = Field(..., ge=0)
    timing: Timing
    activation_month: int = Field(..., ge=1, le=12)
    activation_year: int = Field(..., ge=1900)
    deactivation_month: Optional[int] = Field(None, ge=1, le=12)
    deactivation_year: Optional[int] = Field(None, ge=1900)
    status: BillerStatus = BillerStatus.ACTIVE
    linked_account_id: Optional[str] = None

    @model_validator(mode="after")
    def check_deactivation(self):
        if (self.deactivation_month is None) != (self.deactivation_year is None):
            raise ValueError("deactivation_month and deactivation_year must be given together")
        if self.deactivation_month is not None and (self.deactivation_year, self.deactivation_month) < (
            self.activation_year,
            self.activation_month,
        ):
            raise ValueError("deactivation must not precede activation")
        return self


class BillerResponse(BillerCreate):
    id: str


class ScheduleResponse(BaseModel):
    """Payment schedule row with its reconciled status"""

    id: str
    month: int
    year: int
    payment_number: Optional[int] = None
    expected_amount_cents: int
    paid_amount_cents: int
    due_date: dt.date
    status: ScheduleStatus
    reconciliation_status: ReconciliationStatus
    method: MatchMethod
    matched_transaction_id: Optional[str] = None
    date_paid: Optional[dt.date] = None
    account_id: Optional[str] = None
    receipt: Optional[str] = None

    @classmethod
    def from_view(cls, view) -> "ScheduleResponse":
        schedule = view.schedule
        return cls(
            id=schedule.id,
            month=schedule.month,
            year=schedule.year,
            payment_number=schedule.payment_number,
            expected_amount_cents=schedule.expected_amount_cents,
            paid_amount_cents=view.result.paid_amount_cents,
            due_date=view.due_date,
            status=view.status,
            reconciliation_status=view.result.status,
            method=view.result.method,
            matched_transaction_id=view.result.matched_transaction_id,
            date_paid=schedule.date_paid,
            account_id=schedule.account_id,
            receipt=schedule.receipt,
        )


class InstallmentCreate(BaseModel):
    """Request body for POST/PUT /v1/installments"""

    name: str = Field(..., min_length=1)
    total_amount_cents: int = Field(..., gt=0)
    monthly_amount_cents: int = Field(..., gt=0)
    term_months: int = Field(..., gt=0, le=600)
    paid_amount_cents: int = Field(0, ge=0, description="Paid before tracking started")
    account_id: Optional[str] = None
    start_date: Optional[dt.date] = None
    timing: Optional[Timing] = None


class InstallmentResponse(InstallmentCreate):
    id: str
    derived_paid_cents: int
    remaining_cents: int


class TransactionCreate(BaseModel):
    """Request body for POST /v1/transactions; positive amount = money out"""

    name: str = Field(..., min_length=1)
    date: dt.date
    amount_cents: int
    payment_method_id: Optional[str] = None
    payment_schedule_id: Optional[str] = None


class TransactionResponse(BaseModel):
    id: str
    name: str
    date: Optional[dt.date] = None
    amount_cents: int
    payment_method_id: Optional[str] = None
    payment_schedule_id: Optional[str] = None


class TransactionDeleteResponse(BaseModel):
    deleted: TransactionResponse
    reverted_schedule_id: Optional[str] = None
    schedule_status: Optional[ScheduleStatus] = None


class PaymentRequest(BaseModel):
    """Request body for POST /v1/schedules/{schedule_id}/payments"""

    amount_cents: int = Field(..., gt=0)
    date: dt.date
    account_id: Optional[str] = None
    name: Optional[str] = Field(None, description="Transaction name; defaults to the biller/installment name")
    receipt: Optional[str] = None


class PaymentResponse(BaseModel):
    transaction: TransactionResponse
    schedule: ScheduleResponse


class MarkOverdueResponse(BaseModel):
    marked: int


class BudgetItemSchema(BaseModel):
    name: str = Field(..., min_length=1)
    amount_cents: int = Field(..., ge=0)
    category: str = "Purchases"
    included: bool = True


class BudgetSetupRequest(BaseModel):
    """Request body for PUT /v1/budget/setup"""

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900)
    timing: Timing
    projected_salary_cents: Optional[int] = Field(None, ge=0)
    actual_salary_cents: Optional[int] = Field(None, ge=0)
    status: str = "Saved"
    items: List[BudgetItemSchema] = []


class BudgetSetupResponse(BaseModel):
    id: str
    month: int
    year: int
    timing: Timing
    projected_salary_cents: int
    actual_salary_cents: Optional[int] = None
    status: str
    items: List[BudgetItemSchema]


class BudgetLineItemSchema(BaseModel):
    owner_kind: OwnerKind
    owner_id: str
    name: str
    category: str
    expected_amount_cents: int
    paid_amount_cents: int
    status: ReconciliationStatus
    method: MatchMethod
    matched_transaction_id: Optional[str] = None
    schedule_id: Optional[str] = None
    payment_number: Optional[int] = None
    from_linked_account: bool = False


class BudgetTotalsSchema(BaseModel):
    allocated_cents: int
    paid_cents: int
    income_cents: int
    remaining_cents: int


class BudgetResponse(BaseModel):
    """Response for GET /v1/budget"""

    month: int
    year: int
    timing: Timing
    items: List[BudgetLineItemSchema]
    totals: BudgetTotalsSchema
    setup_id: Optional[str] = None


class SavingsJarCreate(BaseModel):
    name: str = Field(..., min_length=1)
    account_id: str
    current_balance_cents: int = Field(0, ge=0)


class SavingsJarResponse(SavingsJarCreate):
    id: str


class TrashItemResponse(BaseModel):
    id: str
    entity_type: str
    original_id: str
    deleted_at: dt.datetime
    payload: Dict[str, Any]


class PurgeResponse(BaseModel):
    removed: int


class SurplusPointSchema(BaseModel):
    month: int
    year: int
    balance_cents: int
    spending_cents: int


class PayoffPointSchema(BaseModel):
    month: int
    year: int
    payment_cents: int
    balance_cents: int
    percent_complete: float


class InstallmentPayoffSchema(BaseModel):
    installment_id: str
    name: str
    remaining_cents: int
    months_remaining: int
    completion_month: Optional[int] = None
    completion_year: Optional[int] = None
    points: List[PayoffPointSchema]


class ProjectionResponse(BaseModel):
    """Response body for GET /v1/projections"""

    net_balance_cents: int
    monthly_spending_cents: int
    outlook: str = Field(..., description="deficit, low or surplus at the end of the horizon")
    surplus: List[SurplusPointSchema]
    installments: List[InstallmentPayoffSchema]
