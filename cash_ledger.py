"""
Касса студии: журнал приходов и расходов с дневными итогами.
"""

import logging
import math
import threading
from datetime import date, datetime, time
from typing import Iterable, List, Optional

from entities import CashTransaction, TransactionType, new_id
from errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_INCOME_CATEGORY = "Послуги"
DEFAULT_EXPENSE_CATEGORY = "Інше"
EXPENSE_CATEGORIES = ("Зарплата", "Оренда", "Матеріали", "Реклама", "Інше")
TRANSACTION_FIELDS = ("type", "amount", "category", "description", "master_id",
                      "appointment_id", "created_by", "when")


class CashLedger:
    """Журнал только на добавление. Даты сравниваются по местному календарю студии."""

    def __init__(self, transactions: Iterable[CashTransaction] = (), lock=None):
        self._transactions: List[CashTransaction] = list(transactions)
        self._lock = lock or threading.RLock()

    def record(self, type: str, amount: float, category: Optional[str] = None,
               description: str = "", master_id: Optional[str] = None,
               appointment_id: Optional[str] = None, created_by: str = "system",
               when: Optional[datetime] = None) -> CashTransaction:
        if type not in TransactionType.ALL:
            raise ValidationError(f"Unknown transaction type: {type}", field="type")
        if not isinstance(amount, (int, float)) or isinstance(amount, bool):
            raise ValidationError(f"Amount must be a number: {amount!r}", field="amount")
        if math.isnan(amount) or math.isinf(amount) or amount <= 0:
            raise ValidationError("Amount must be positive", field="amount")
        when = _moment(when)

        if not category:
            category = DEFAULT_INCOME_CATEGORY if type == TransactionType.INCOME else DEFAULT_EXPENSE_CATEGORY

        transaction = CashTransaction(
            id=new_id("tx"),
            date=when,
            type=type,
            amount=amount,
            category=category,
            description=description or "",
            master_id=master_id,
            appointment_id=appointment_id,
            created_by=created_by,
        )
        with self._lock:
            self._transactions.append(transaction)
        logger.info(f"Cash {type} recorded: {amount} ({category})")
        return transaction

    def all(self) -> List[CashTransaction]:
        with self._lock:
            return list(self._transactions)

    def for_date(self, day: date) -> List[CashTransaction]:
        if isinstance(day, datetime):
            day = day.date()
        return [t for t in self.all() if t.date.date() == day]

    def _sum(self, transactions: Iterable[CashTransaction], type: str):
        return sum(t.amount for t in transactions if t.type == type)

    def daily_revenue(self, day: date):
        return self._sum(self.for_date(day), TransactionType.INCOME)

    def daily_expense(self, day: date):
        return self._sum(self.for_date(day), TransactionType.EXPENSE)

    def total_income(self):
        return self._sum(self.all(), TransactionType.INCOME)

    def total_expense(self):
        return self._sum(self.all(), TransactionType.EXPENSE)

    def balance(self):
        return self.total_income() - self.total_expense()


def _moment(when) -> datetime:
    if when is None:
        return datetime.now()
    if isinstance(when, datetime):
        return when
    # Дата без времени относится к началу дня
    if isinstance(when, date):
        return datetime.combine(when, time.min)
    raise ValidationError(f"Invalid transaction date: {when!r}", field="date")
