from datetime import date, datetime

import pytest

from cash_ledger import CashLedger
from entities import TransactionType
from errors import ValidationError


@pytest.fixture
def ledger():
    return CashLedger()


def test_daily_revenue_counts_only_income_of_that_day(ledger):
    ledger.record(TransactionType.INCOME, 350, when=datetime(2026, 10, 19, 10, 0))
    ledger.record(TransactionType.INCOME, 450, when=datetime(2026, 10, 19, 23, 59))
    ledger.record(TransactionType.EXPENSE, 200, "Матеріали", when=datetime(2026, 10, 19, 12, 0))
    ledger.record(TransactionType.INCOME, 100, when=datetime(2026, 10, 20, 0, 0))

    assert ledger.daily_revenue(date(2026, 10, 19)) == 800
    assert ledger.daily_expense(date(2026, 10, 19)) == 200
    assert ledger.daily_revenue(date(2026, 10, 20)) == 100
    assert ledger.daily_revenue(date(2026, 10, 21)) == 0


def test_balance(ledger):
    ledger.record(TransactionType.INCOME, 1000)
    ledger.record(TransactionType.EXPENSE, 300, "Оренда")
    ledger.record(TransactionType.EXPENSE, 150.5, "Реклама")

    assert ledger.total_income() == 1000
    assert ledger.total_expense() == pytest.approx(450.5)
    assert ledger.balance() == pytest.approx(549.5)


@pytest.mark.parametrize("amount", [0, -10, None])
def test_non_positive_amount_is_rejected(ledger, amount):
    with pytest.raises(ValidationError) as excinfo:
        ledger.record(TransactionType.INCOME, amount)
    assert excinfo.value.field == "amount"
    assert ledger.all() == []


def test_unknown_type_is_rejected(ledger):
    with pytest.raises(ValidationError):
        ledger.record("refund", 100)


def test_default_categories(ledger):
    income = ledger.record(TransactionType.INCOME, 100)
    expense = ledger.record(TransactionType.EXPENSE, 100)
    assert income.category == "Послуги"
    assert expense.category == "Інше"


def test_links_are_kept(ledger):
    tx = ledger.record(TransactionType.INCOME, 350, master_id="olena", appointment_id="apt-1",
                       description="Манікюр")
    assert (tx.master_id, tx.appointment_id, tx.description) == ("olena", "apt-1", "Манікюр")


@pytest.mark.parametrize("amount", ["100", float("nan"), float("inf"), True])
def test_amount_must_be_a_finite_number(ledger, amount):
    with pytest.raises(ValidationError) as excinfo:
        ledger.record(TransactionType.INCOME, amount)
    assert excinfo.value.field == "amount"
    assert ledger.all() == []


def test_bare_date_is_start_of_day(ledger):
    tx = ledger.record(TransactionType.INCOME, 300, when=date(2026, 10, 19))
    assert tx.date == datetime(2026, 10, 19, 0, 0)
    assert ledger.daily_revenue(date(2026, 10, 19)) == 300
    assert ledger.daily_revenue(datetime(2026, 10, 19, 18, 30)) == 300

    with pytest.raises(ValidationError) as excinfo:
        ledger.record(TransactionType.INCOME, 300, when="2026-10-19")
    assert excinfo.value.field == "date"
