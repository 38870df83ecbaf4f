# budget_tracker/utils/budgeting.py
"""
Budget arithmetic.

Everything here is a pure function over records that were already fetched
for one user: budgets expose ``amount``, ``month``, ``year`` and
``category_id``; transactions expose ``amount``, ``category_id`` and
``transaction_date``. ORM rows and pydantic models both qualify.
"""
import math
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from budget_tracker.models.transaction import TransactionType
from budget_tracker.schemas.budget import BudgetEvaluation, BudgetStatus, MonthSummary
from budget_tracker.schemas.transaction import BudgetAlert

WARNING_RATIO = 0.8
EXCEEDED_PERCENT = 100.0


# ────────────────────────────────────────────────────────────────────────────────
# PERIODS
# ────────────────────────────────────────────────────────────────────────────────
def month_window(year: int, month: int) -> Tuple[datetime, datetime]:
    """Return ``(start, end)``: midnight of the 1st and of the 1st of next month.

    ``start <= d < end`` covers every instant of the first through the last
    calendar day of the month.
    """
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def in_month(value: datetime, year: int, month: int) -> bool:
    start, end = month_window(year, month)
    return start <= value < end


def governs(budget: Any, category_id: Optional[uuid.UUID], when: datetime) -> bool:
    """True if ``budget`` is the budget for this category at this date."""
    return (
        budget.category_id == category_id
        and budget.year == when.year
        and budget.month == when.month
    )


# ────────────────────────────────────────────────────────────────────────────────
# HELPERS – COMMON
# ────────────────────────────────────────────────────────────────────────────────
def total_amount(records: Iterable[Any]) -> float:
    # fsum is exact, so totals do not depend on input order
    return math.fsum(r.amount for r in records)


def percent_of(spent: float, amount: float) -> float:
    if amount > 0:
        return spent * 100 / amount
    # Zero budget: nothing spent is 0%, anything spent counts as fully used
    return EXCEEDED_PERCENT if spent > 0 else 0.0


def classify_spend(spent: float, amount: float) -> BudgetStatus:
    if amount <= 0:
        return BudgetStatus.exceeded if spent > 0 else BudgetStatus.good
    if spent >= amount:
        return BudgetStatus.exceeded
    if spent >= amount * WARNING_RATIO:
        return BudgetStatus.warning
    return BudgetStatus.good


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_amount(value: float) -> str:
    """500.0 -> "500", 12.5 -> "12.5", 10.257 -> "10.26"."""
    text = f"{value:.2f}"
    return text.rstrip("0").rstrip(".")


# ────────────────────────────────────────────────────────────────────────────────
# EVALUATION
# ────────────────────────────────────────────────────────────────────────────────
def evaluate_budget(budget: Any, transactions: Iterable[Any], pending_amount: float = 0.0) -> BudgetEvaluation:
    """
    Compare one budget with the expense transactions of its period.

    ``pending_amount`` is added to the spend for a transaction that has not
    been saved yet.
    """
    spent = total_amount(transactions) + pending_amount
    return BudgetEvaluation(
        spent=spent,
        remaining=budget.amount - spent,
        percent_used=percent_of(spent, budget.amount),
        status=classify_spend(spent, budget.amount),
    )


def check_budget_alert(
    candidate: Any,
    budget: Optional[Any],
    prior_transactions: Iterable[Any],
) -> Optional[BudgetAlert]:
    """
    Alert for an expense about to be saved.

    Returns None for income, when no budget covers the candidate's
    category/month/year, or when spend stays at or under 80% of the budget.
    """
    if candidate.type != TransactionType.expense or budget is None:
        return None
    if not governs(budget, candidate.category_id, candidate.transaction_date):
        return None

    evaluation = evaluate_budget(budget, prior_transactions, pending_amount=candidate.amount)
    spent = evaluation.spent

    if spent > budget.amount:
        return BudgetAlert(
            message=(
                "This transaction exceeds your budget for this category. "
                f"Budget: ${format_amount(budget.amount)}, Total spent: ${format_amount(spent)}"
            ),
            is_over_budget=True,
            budget_amount=budget.amount,
            total_spent=spent,
            percent_used=evaluation.percent_used,
        )
    if spent > budget.amount * WARNING_RATIO:
        return BudgetAlert(
            message=f"You've used {round_half_up(evaluation.percent_used)}% of your budget for this category.",
            is_over_budget=False,
            budget_amount=budget.amount,
            total_spent=spent,
            percent_used=evaluation.percent_used,
        )
    return None


def group_by_category(transactions: Iterable[Any]) -> Dict[Optional[uuid.UUID], List[Any]]:
    grouped: Dict[Optional[uuid.UUID], List[Any]] = defaultdict(list)
    for tx in transactions:
        grouped[tx.category_id].append(tx)
    return grouped


def evaluate_budgets(budgets: Iterable[Any], transactions: Iterable[Any]) -> List[Tuple[Any, BudgetEvaluation, List[Any]]]:
    """Evaluate each budget of one month against its category's transactions."""
    by_category = group_by_category(transactions)
    results = []
    for budget in budgets:
        matched = [
            tx for tx in by_category.get(budget.category_id, [])
            if in_month(tx.transaction_date, budget.year, budget.month)
        ]
        results.append((budget, evaluate_budget(budget, matched), matched))
    return results


# ────────────────────────────────────────────────────────────────────────────────
# YEARLY SUMMARY
# ────────────────────────────────────────────────────────────────────────────────
def summarize_year(year: int, budgets: Iterable[Any], expense_transactions: Iterable[Any]) -> List[MonthSummary]:
    """Budgeted vs. spent for every month of ``year``, January first."""
    budgets_by_month: Dict[int, List[Any]] = defaultdict(list)
    for budget in budgets:
        if budget.year == year:
            budgets_by_month[budget.month].append(budget)

    spent_by_month: Dict[int, List[Any]] = defaultdict(list)
    for tx in expense_transactions:
        if tx.transaction_date.year == year:
            spent_by_month[tx.transaction_date.month].append(tx)

    summary = []
    for month in range(1, 13):
        total_budgeted = total_amount(budgets_by_month[month])
        total_spent = total_amount(spent_by_month[month])
        summary.append(MonthSummary(
            month=month,
            year=year,
            total_budgeted=total_budgeted,
            total_spent=total_spent,
            difference=total_budgeted - total_spent,
            percent_used=total_spent * 100 / total_budgeted if total_budgeted > 0 else 0.0,
        ))
    return summary
