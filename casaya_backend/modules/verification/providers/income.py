"""Income verification from recurring deposits on the linked bank item."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ....core.utils import utc_now
from ..models import Provider, ProviderSession
from .base import ProviderOutcome
from .plaid_linked import PlaidLinkedAdapter

LOOKBACK_DAYS = 90
AMOUNT_TOLERANCE = 0.05
BIWEEKLY_MIN_OCCURRENCES = 6
MONTHLY_MIN_OCCURRENCES = 3
BIWEEKLY_TO_MONTHLY = 2.17
INCOME_CATEGORIES = {"Payroll", "Transfer", "Deposit"}


@dataclass
class IncomeEstimate:
    monthly: float
    annual: float
    frequency: str
    occurrences: int


def is_income_deposit(transaction: dict[str, Any]) -> bool:
    """Money flowing in (negative amount in Plaid's sign) tagged as income."""
    if transaction.get("amount", 0) >= 0:
        return False
    category = transaction.get("personal_finance_category") or {}
    if category.get("primary") == "INCOME":
        return True
    return any(c in INCOME_CATEGORIES for c in transaction.get("category") or [])


def estimate_income(transactions: list[dict[str, Any]]) -> IncomeEstimate:
    """Estimate income from the most frequent group of similar deposits.

    Deposits within 5% of a group's first amount join that group. Six or
    more pay cheques in the window read as bi-weekly pay, three or more as
    monthly; anything less yields no income.
    """
    groups: list[tuple[float, list[float]]] = []
    for transaction in transactions:
        if not is_income_deposit(transaction):
            continue
        amount = abs(transaction["amount"])
        for base, values in groups:
            if base * (1 - AMOUNT_TOLERANCE) <= amount <= base * (1 + AMOUNT_TOLERANCE):
                values.append(amount)
                break
        else:
            groups.append((amount, [amount]))

    occurrences = 0
    pay_cheque = 0.0
    for _, values in groups:
        if len(values) > occurrences:
            occurrences = len(values)
            pay_cheque = sum(values) / len(values)

    if occurrences >= BIWEEKLY_MIN_OCCURRENCES:
        monthly, frequency = pay_cheque * BIWEEKLY_TO_MONTHLY, "biweekly"
    elif occurrences >= MONTHLY_MIN_OCCURRENCES:
        monthly, frequency = pay_cheque, "monthly"
    else:
        monthly, frequency = 0.0, "unknown"

    return IncomeEstimate(
        monthly=round(monthly, 2),
        annual=round(monthly * 12, 2),
        frequency=frequency,
        occurrences=occurrences,
    )


class IncomeAdapter(PlaidLinkedAdapter):
    """Annual income estimated from 90 days of transactions; success iff > 0."""

    provider = Provider.INCOME

    async def verify(
        self,
        db: AsyncSession,
        tenant_id: str,
        session: ProviderSession,
        payload: dict[str, Any],
    ) -> ProviderOutcome:
        access_token = await self.resolve_access_token(db, tenant_id, session, payload)
        end_date = utc_now().date()
        start_date = end_date - timedelta(days=LOOKBACK_DAYS)
        transactions = await self.client.get_transactions(
            access_token, start_date, end_date
        )

        estimate = estimate_income(transactions)
        details = {
            "monthly": estimate.monthly,
            "annual": estimate.annual,
            "frequency": estimate.frequency,
            "occurrences": estimate.occurrences,
        }
        if estimate.annual <= 0:
            return ProviderOutcome(
                success=False, details=details, error="No recurring income found"
            )
        return ProviderOutcome(success=True, value=estimate.annual, details=details)
