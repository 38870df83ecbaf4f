import uuid
from datetime import datetime
from types import SimpleNamespace

import pytest

from budget_tracker.models.transaction import TransactionType
from budget_tracker.schemas.budget import BudgetStatus
from budget_tracker.utils.budgeting import (
    check_budget_alert,
    evaluate_budget,
    evaluate_budgets,
    format_amount,
    month_window,
)

FOOD = uuid.uuid4()
RENT = uuid.uuid4()


def budget(amount, category_id=FOOD, month=3, year=2024):
    return SimpleNamespace(amount=amount, category_id=category_id, month=month, year=year)


def expense(amount, when=datetime(2024, 3, 15), category_id=FOOD, type=TransactionType.expense):
    return SimpleNamespace(amount=amount, category_id=category_id, transaction_date=when, type=type)


def test_month_window_covers_last_day_and_wraps_december() -> None:
    assert month_window(2024, 2) == (datetime(2024, 2, 1), datetime(2024, 3, 1))
    assert month_window(2024, 12) == (datetime(2024, 12, 1), datetime(2025, 1, 1))


def test_spend_at_84_percent_is_warning() -> None:
    result = evaluate_budget(budget(500), [expense(300), expense(120)])

    assert result.spent == 420
    assert result.remaining == 80
    assert result.percent_used == pytest.approx(84)
    assert result.status == BudgetStatus.warning


def test_pending_amount_pushes_budget_over() -> None:
    result = evaluate_budget(budget(500), [expense(400)], pending_amount=150)

    assert result.spent == 550
    assert result.remaining == -50
    assert result.status == BudgetStatus.exceeded


def test_no_transactions_is_good() -> None:
    result = evaluate_budget(budget(300), [])

    assert result.spent == 0
    assert result.percent_used == 0
    assert result.status == BudgetStatus.good


@pytest.mark.parametrize(
    "spent, expected",
    [
        (0, BudgetStatus.good),
        (399.99, BudgetStatus.good),
        (400, BudgetStatus.warning),
        (499.99, BudgetStatus.warning),
        (500, BudgetStatus.exceeded),
        (650, BudgetStatus.exceeded),
    ],
)
def test_status_thresholds(spent, expected) -> None:
    assert evaluate_budget(budget(500), [expense(spent)]).status == expected


def test_zero_budget_without_spend_is_good() -> None:
    result = evaluate_budget(budget(0), [])

    assert result.percent_used == 0
    assert result.status == BudgetStatus.good


def test_zero_budget_with_spend_is_exceeded() -> None:
    result = evaluate_budget(budget(0), [expense(5)])

    assert result.percent_used == 100
    assert result.remaining == -5
    assert result.status == BudgetStatus.exceeded


def test_evaluation_is_repeatable() -> None:
    b = budget(250)
    txs = [expense(100), expense(60.5)]

    assert evaluate_budget(b, txs) == evaluate_budget(b, txs)


def test_over_budget_alert_cites_budget_and_total() -> None:
    alert = check_budget_alert(expense(150), budget(500), [expense(400)])

    assert alert is not None
    assert alert.is_over_budget is True
    assert alert.message == (
        "This transaction exceeds your budget for this category. Budget: $500, Total spent: $550"
    )
    assert alert.total_spent == 550
    assert alert.budget_amount == 500


def test_warning_alert_rounds_half_up() -> None:
    alert = check_budget_alert(expense(12.5), budget(500), [expense(400)])

    assert alert is not None
    assert alert.is_over_budget is False
    assert alert.message == "You've used 83% of your budget for this category."


def test_spend_exactly_at_eighty_percent_has_no_alert() -> None:
    assert check_budget_alert(expense(100), budget(500), [expense(300)]) is None


def test_spend_exactly_at_budget_is_a_warning_not_over() -> None:
    alert = check_budget_alert(expense(100), budget(500), [expense(400)])

    assert alert is not None
    assert alert.is_over_budget is False
    assert alert.message == "You've used 100% of your budget for this category."


def test_income_never_alerts() -> None:
    income = expense(1000, type=TransactionType.income)

    assert check_budget_alert(income, budget(100), []) is None


def test_missing_budget_is_not_an_alert() -> None:
    assert check_budget_alert(expense(1000), None, []) is None


def test_budget_for_another_period_is_ignored() -> None:
    april = expense(1000, when=datetime(2024, 4, 2))

    assert check_budget_alert(april, budget(100), []) is None
    assert check_budget_alert(expense(1000, category_id=RENT), budget(100), []) is None


def test_zero_budget_alerts_on_any_expense() -> None:
    alert = check_budget_alert(expense(1), budget(0), [])

    assert alert is not None
    assert alert.is_over_budget is True
    assert alert.message.endswith("Budget: $0, Total spent: $1")


def test_evaluate_budgets_matches_each_budget_to_its_category() -> None:
    food, rent = budget(200), budget(1000, category_id=RENT)
    txs = [
        expense(150),
        expense(20),
        expense(900, category_id=RENT),
        expense(75, when=datetime(2024, 2, 28)),
    ]

    results = {b.category_id: (evaluation, matched) for b, evaluation, matched in evaluate_budgets([food, rent], txs)}

    assert results[FOOD][0].spent == 170
    assert results[FOOD][0].status == BudgetStatus.warning
    assert len(results[FOOD][1]) == 2
    assert results[RENT][0].spent == 900
    assert results[RENT][0].status == BudgetStatus.warning


@pytest.mark.parametrize(
    "value, text",
    [(500.0, "500"), (550, "550"), (12.5, "12.5"), (10.257, "10.26"), (0, "0")],
)
def test_format_amount(value, text) -> None:
    assert format_amount(value) == text
