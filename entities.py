"""
Доменные сущности студии: мастера, услуги, клиенты, записи, касса.
"""

import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple

from errors import ValidationError

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class AppointmentStatus:
    NEW = "new"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (NEW, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED)


class TransactionType:
    INCOME = "income"
    EXPENSE = "expense"

    ALL = (INCOME, EXPENSE)


class Role:
    GUEST = "guest"
    MASTER = "master"
    ADMIN = "admin"


@dataclass(frozen=True)
class WorkDay:
    start: time
    end: time
    is_working: bool = True

    def __post_init__(self):
        if self.is_working and self.start > self.end:
            raise ValidationError("Work day start must not be after end", field="schedule")


DAY_OFF = WorkDay(time(0, 0), time(0, 0), False)


@dataclass(frozen=True)
class WorkSchedule:
    """Недельное расписание мастера, семь дней начиная с понедельника."""

    days: Tuple[WorkDay, ...]

    def __post_init__(self):
        if len(self.days) != 7:
            raise ValidationError("Schedule must have seven days", field="schedule")

    def day(self, weekday: int) -> WorkDay:
        return self.days[weekday]

    @classmethod
    def from_dict(cls, data: Dict[str, dict]) -> "WorkSchedule":
        days = []
        for name in WEEKDAYS:
            raw = data.get(name)
            if raw is None or not raw.get("isWorking", raw.get("is_working", False)):
                days.append(DAY_OFF)
                continue
            days.append(WorkDay(
                start=datetime.strptime(raw["start"], "%H:%M").time(),
                end=datetime.strptime(raw["end"], "%H:%M").time(),
                is_working=True,
            ))
        return cls(tuple(days))

    @classmethod
    def uniform(cls, start: str, end: str, working_days: int = 5) -> "WorkSchedule":
        work = WorkDay(datetime.strptime(start, "%H:%M").time(),
                       datetime.strptime(end, "%H:%M").time())
        return cls(tuple(work if i < working_days else DAY_OFF for i in range(7)))


@dataclass(frozen=True)
class Master:
    id: str
    name: str
    schedule: WorkSchedule
    color: str = "#3B82F6"
    is_active: bool = True


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    price: int
    duration: int  # в минутах
    category: str = ""
    color: str = "#06B6D4"
    is_active: bool = True

    def __post_init__(self):
        if self.price < 0:
            raise ValidationError("Price must not be negative", field="price")
        if self.duration <= 0:
            raise ValidationError("Duration must be positive", field="duration")


@dataclass(frozen=True)
class Client:
    id: str
    name: str
    phone: str
    created_at: datetime
    email: Optional[str] = None
    notes: Optional[str] = None
    total_visits: int = 0
    favorite_services: Tuple[str, ...] = ()
    last_visit: Optional[datetime] = None


@dataclass(frozen=True)
class Appointment:
    id: str
    client_id: str
    client_name: str
    client_phone: str
    master_id: str
    services: Tuple[str, ...]
    start_time: datetime
    end_time: datetime
    created_at: datetime
    status: str = AppointmentStatus.NEW
    notes: Optional[str] = None
    created_by: str = "system"

    @property
    def date(self) -> date:
        return self.start_time.date()

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED


@dataclass(frozen=True)
class CashTransaction:
    id: str
    date: datetime
    type: str
    amount: float
    category: str
    description: str = ""
    master_id: Optional[str] = None
    appointment_id: Optional[str] = None
    created_by: str = "system"


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: str = Role.GUEST
    master_id: Optional[str] = None


@dataclass
class AppointmentFormData:
    """Данные формы записи в том виде, в каком их присылает интерфейс."""

    client_name: str
    client_phone: str
    master_id: str
    services: List[str]
    date: date
    time: str
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "AppointmentFormData":
        names = [f.name for f in fields(cls)]
        unknown = sorted(set(data) - set(names))
        if unknown:
            raise ValidationError(f"Unknown form field: {unknown[0]}", field=unknown[0])
        for name in names:
            if name != "notes" and name not in data:
                raise ValidationError(f"Missing form field: {name}", field=name)
        return cls(**data)


@dataclass(frozen=True)
class FavoriteService:
    service_id: str
    service_name: str
    count: int


@dataclass(frozen=True)
class ClientVisit:
    id: str
    client_id: str
    date: datetime
    master_id: str
    services: Tuple[str, ...]
    total_price: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class ClientAnalytics:
    client_id: str
    total_visits: int
    total_spent: int
    average_check: float
    favorite_services: Tuple[FavoriteService, ...] = ()
    recommended_services: Tuple[Service, ...] = ()
    visit_history: Tuple[ClientVisit, ...] = ()
    last_visit_date: Optional[datetime] = None


@dataclass
class StudioSnapshot:
    """Полное состояние студии для загрузки и сохранения."""

    masters: List[Master] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)
    clients: List[Client] = field(default_factory=list)
    appointments: List[Appointment] = field(default_factory=list)
    transactions: List[CashTransaction] = field(default_factory=list)
