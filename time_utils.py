"""
Утилиты времени: сетка слотов, пересечение интервалов, рабочие часы.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterator, Union

from errors import ValidationError

TimeLike = Union[str, time]

DEFAULT_START_HOUR = 9
DEFAULT_END_HOUR = 20
DEFAULT_STEP_MINUTES = 15


class SlotGrid:
    """
    Сетка меток "HH:MM" с фиксированным шагом.
    Ленивая и перезапускаемая: каждый обход начинается заново.
    """

    def __init__(self, start_hour: int = DEFAULT_START_HOUR,
                 end_hour: int = DEFAULT_END_HOUR,
                 step_minutes: int = DEFAULT_STEP_MINUTES):
        if step_minutes <= 0:
            raise ValidationError("Step must be positive", field="step_minutes")
        if not 0 <= start_hour <= end_hour <= 24:
            raise ValidationError("Invalid grid hours", field="start_hour")
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.step_minutes = step_minutes

    def __iter__(self) -> Iterator[str]:
        minutes = self.start_hour * 60
        end = self.end_hour * 60
        while minutes < end:
            yield f"{minutes // 60:02d}:{minutes % 60:02d}"
            minutes += self.step_minutes

    def __len__(self) -> int:
        span = (self.end_hour - self.start_hour) * 60
        return -(-span // self.step_minutes)

    def __repr__(self):
        return f"<SlotGrid {self.start_hour:02d}:00-{self.end_hour:02d}:00 step={self.step_minutes}>"


def slot_grid(start_hour: int = DEFAULT_START_HOUR,
              end_hour: int = DEFAULT_END_HOUR,
              step_minutes: int = DEFAULT_STEP_MINUTES) -> SlotGrid:
    return SlotGrid(start_hour, end_hour, step_minutes)


def parse_time(value: TimeLike) -> time:
    if isinstance(value, time):
        return value
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time: {value!r}", field="time")


def parse_date(value: Union[str, date]) -> date:
    """Дата в формате YYYY-MM-DD или объект date/datetime."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r}", field="date")


def format_time(value: Union[time, datetime]) -> str:
    return value.strftime("%H:%M")


def combine(day: date, value: TimeLike) -> datetime:
    return datetime.combine(day, parse_time(value))


def add_minutes(moment: datetime, minutes: int) -> datetime:
    return moment + timedelta(minutes=minutes)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # Полуоткрытые интервалы: касание концами не считается пересечением
    return a_start < b_end and b_start < a_end


def within_working_hours(schedule, weekday: int, start: time, end: time) -> bool:
    """
    True, если день рабочий и интервал [start, end] целиком внутри рабочего окна.
    weekday: 0 - понедельник, 6 - воскресенье.
    """
    day = schedule.day(weekday)
    if not day.is_working:
        return False
    return start >= day.start and end <= day.end
