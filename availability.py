"""
Проверка доступности времени мастера.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from entities import Appointment
from errors import ValidationError
from time_utils import (TimeLike, add_minutes, combine, overlaps, parse_date, slot_grid,
                        within_working_hours)


class AvailabilityChecker:
    """
    Решает, можно ли записать клиента к мастеру на заданное время.

    masters - любой объект с get_master(master_id), бросающим NotFoundError.
    appointments - любой объект с appointments_for_master(master_id, day),
    возвращающим записи мастера за день.
    Ничего не изменяет, результат зависит только от текущего состояния.
    """

    def __init__(self, masters, appointments):
        self.masters = masters
        self.appointments = appointments

    def is_available(self, master_id: str, day: date, start: TimeLike, duration_minutes: int,
                     exclude_id: Optional[str] = None) -> bool:
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationError("Duration must be positive", field="duration")

        master = self.masters.get_master(master_id)
        if not master.is_active:
            return False

        day = parse_date(day)
        start_at = combine(day, start)
        end_at = add_minutes(start_at, duration_minutes)
        # Запись не может переходить через полночь
        if end_at.date() != day:
            return False
        if not within_working_hours(master.schedule, day.weekday(), start_at.time(), end_at.time()):
            return False

        return not self.has_conflict(master_id, start_at, end_at, exclude_id)

    def has_conflict(self, master_id: str, start_at: datetime, end_at: datetime,
                     exclude_id: Optional[str] = None) -> bool:
        """Есть ли у мастера неотмененная запись, пересекающая [start_at, end_at)."""
        existing: Iterable[Appointment] = self.appointments.appointments_for_master(
            master_id, start_at.date())
        for appointment in existing:
            if appointment.is_cancelled or appointment.id == exclude_id:
                continue
            if overlaps(start_at, end_at, appointment.start_time, appointment.end_time):
                return True
        return False

    def available_slots(self, master_id: str, day: date, duration_minutes: int,
                        grid: Optional[Iterable[str]] = None) -> List[str]:
        """Свободные метки сетки. Результат справочный, при записи время проверяется заново."""
        if grid is None:
            grid = slot_grid()
        return [slot for slot in grid if self.is_available(master_id, day, slot, duration_minutes)]
