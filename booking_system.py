"""
Модуль системы записи для студии маникюра.
Точка входа для интерфейса: мастера, услуги, клиенты, записи, аналитика, касса.
"""

import logging
import threading
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from analytics import ClientVisitAggregator
from appointment_store import AppointmentStore, TransitionPolicy
from cash_ledger import TRANSACTION_FIELDS, CashLedger
from catalog import Catalog
from db_config import LOG_LEVEL, SLOT_END_HOUR, SLOT_START_HOUR, SLOT_STEP_MINUTES
from entities import (Appointment, AppointmentFormData, CashTransaction, Client, ClientAnalytics,
                      ClientVisit, Master, Role, Service, StudioSnapshot, User, WorkSchedule)
from errors import BookingError, ValidationError
from permissions import (can_edit_appointment, can_manage_cash,
                         can_manage_catalog, can_view_client_details, require)
from time_utils import TimeLike, slot_grid

logger = logging.getLogger(__name__)

DEFAULT_MASTERS = [
    Master(
        id="master-1",
        name="Вікторія",
        color="#06B6D4",
        schedule=WorkSchedule.from_dict({
            **{day: {"start": "09:00", "end": "18:00", "isWorking": True}
               for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
            "saturday": {"start": "10:00", "end": "16:00", "isWorking": True},
        }),
    ),
    Master(
        id="master-2",
        name="Світлана",
        color="#0EA5E9",
        schedule=WorkSchedule.from_dict({
            **{day: {"start": "10:00", "end": "19:00", "isWorking": True}
               for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
            "saturday": {"start": "11:00", "end": "17:00", "isWorking": True},
        }),
    ),
    Master(
        id="master-3",
        name="Юля",
        color="#3B82F6",
        schedule=WorkSchedule.from_dict({
            **{day: {"start": "09:00", "end": "17:00", "isWorking": True}
               for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
            "saturday": {"start": "10:00", "end": "15:00", "isWorking": True},
        }),
    ),
]

DEFAULT_SERVICES = [
    Service(id="svc-1", name="Манікюр класичний", price=350, duration=60, category="Манікюр", color="#06B6D4"),
    Service(id="svc-2", name="Манікюр апаратний", price=400, duration=75, category="Манікюр", color="#06B6D4"),
    Service(id="svc-3", name="Покриття гель-лак", price=450, duration=90, category="Покриття", color="#0EA5E9"),
    Service(id="svc-4", name="Нарощування нігтів", price=800, duration=150, category="Нарощування", color="#3B82F6"),
    Service(id="svc-5", name="Корекція нарощених", price=600, duration=120, category="Нарощування", color="#3B82F6"),
    Service(id="svc-6", name="SPA-догляд", price=250, duration=30, category="Догляд", color="#10B981"),
    Service(id="svc-7", name="Дизайн нігтів", price=150, duration=30, category="Дизайн", color="#F59E0B"),
    Service(id="svc-8", name="Зняття покриття", price=100, duration=20, category="Додатково", color="#6B7280"),
]


class BookingSystem:
    """
    Все изменения идут под одной блокировкой студии, поэтому проверка
    времени никогда не видит наполовину примененную операцию.

    user во всех методах - действующий пользователь; None означает
    доверенный вызов без проверки прав.
    """

    def __init__(self, snapshot: Optional[StudioSnapshot] = None, storage=None,
                 policy: Optional[TransitionPolicy] = None):
        self.storage = storage
        if snapshot is None:
            snapshot = self._load_snapshot()

        self._lock = threading.RLock()
        self.catalog = Catalog(snapshot.masters, snapshot.services, snapshot.clients)
        self.appointments = AppointmentStore(self.catalog, snapshot.appointments,
                                             policy=policy, lock=self._lock)
        self.ledger = CashLedger(snapshot.transactions, lock=self._lock)
        self.aggregator = ClientVisitAggregator(self.catalog, self.appointments)
        self.grid = slot_grid(SLOT_START_HOUR, SLOT_END_HOUR, SLOT_STEP_MINUTES)
        logging.info("Booking system initialized")

    def _load_snapshot(self) -> StudioSnapshot:
        if self.storage is None or self.storage.is_empty():
            # Стандартные мастера и услуги для новой студии
            return StudioSnapshot(masters=list(DEFAULT_MASTERS), services=list(DEFAULT_SERVICES))
        return self.storage.load()

    def snapshot(self) -> StudioSnapshot:
        with self._lock:
            return StudioSnapshot(
                masters=self.catalog.list_masters(),
                services=self.catalog.list_services(),
                clients=self.catalog.list_clients(),
                appointments=self.appointments.all(),
                transactions=self.ledger.all(),
            )

    def save(self) -> None:
        if self.storage is None:
            raise BookingError("No storage configured")
        self.storage.save(self.snapshot())

    # Справочники

    def list_masters(self, active_only: bool = False) -> List[Master]:
        return self.catalog.list_masters(active_only)

    def list_services(self, active_only: bool = False) -> List[Service]:
        return self.catalog.list_services(active_only)

    def list_clients(self, user: Optional[User] = None) -> List[Client]:
        if user is not None:
            require(can_view_client_details(user), "view clients")
        return self.catalog.list_clients()

    def add_master(self, name: str, schedule: WorkSchedule, color: str = "#3B82F6",
                   user: Optional[User] = None) -> Master:
        self._require_catalog(user)
        with self._lock:
            return self.catalog.add_master(name, schedule, color)

    def update_master(self, master_id: str, user: Optional[User] = None, **changes) -> Master:
        self._require_catalog(user)
        with self._lock:
            return self.catalog.update_master(master_id, **changes)

    def delete_master(self, master_id: str, user: Optional[User] = None) -> Master:
        self._require_catalog(user)
        with self._lock:
            return self.catalog.deactivate_master(master_id)

    def add_service(self, name: str, price: int, duration: int, category: str = "",
                    color: str = "#06B6D4", user: Optional[User] = None) -> Service:
        self._require_catalog(user)
        with self._lock:
            return self.catalog.add_service(name, price, duration, category, color)

    def update_service(self, service_id: str, user: Optional[User] = None, **changes) -> Service:
        self._require_catalog(user)
        with self._lock:
            return self.catalog.update_service(service_id, **changes)

    def delete_service(self, service_id: str, user: Optional[User] = None) -> Service:
        self._require_catalog(user)
        with self._lock:
            return self.catalog.deactivate_service(service_id)

    def _require_catalog(self, user: Optional[User]) -> None:
        if user is not None:
            require(can_manage_catalog(user), "manage catalog")

    # Записи

    def resolve_client(self, name: str, phone: str) -> str:
        with self._lock:
            return self.catalog.resolve_client(name, phone).id

    def is_time_slot_available(self, master_id: str, day: date, time: TimeLike,
                               duration_minutes: int) -> bool:
        with self._lock:
            return self.appointments.checker.is_available(master_id, day, time, duration_minutes)

    def get_available_slots(self, master_id: str, day: date, service_ids: List[str]) -> List[str]:
        """Свободное время начала для выбранных услуг. Считается заново при каждом вызове."""
        with self._lock:
            duration = self.catalog.total_duration(
                s.id for s in map(self.catalog.get_service, service_ids) if s.is_active)
            if duration == 0:
                return []
            return self.appointments.checker.available_slots(master_id, day, duration, self.grid)

    def create_appointment(self, form: Union[AppointmentFormData, Dict],
                           user: Optional[User] = None) -> Appointment:
        created_by = user.id if user else "system"
        try:
            if isinstance(form, dict):
                form = AppointmentFormData.from_dict(form)
            if user is not None:
                require(can_edit_appointment(user, _draft(form.master_id)), "create appointment")
            return self.appointments.create(form, created_by=created_by)
        except BookingError as e:
            logger.warning(f"Booking rejected ({type(e).__name__}): {e.message}")
            raise

    def book_for_client(self, client_id: str, master_id: str, service_ids: List[str],
                        day: date, time: TimeLike, notes: Optional[str] = None,
                        user: Optional[User] = None) -> Appointment:
        created_by = user.id if user else "system"
        try:
            if user is not None:
                require(can_edit_appointment(user, _draft(master_id)), "create appointment")
            return self.appointments.create_for_client(client_id, master_id, service_ids, day, time,
                                                       notes=notes, created_by=created_by)
        except BookingError as e:
            logger.warning(f"Booking for {client_id} rejected ({type(e).__name__}): {e.message}")
            raise

    def move_appointment(self, appointment_id: str, master_id: str,
                         time: Union[datetime, TimeLike], user: Optional[User] = None) -> bool:
        try:
            if user is not None:
                self._require_edit(user, appointment_id)
                if user.role == Role.MASTER:
                    require(user.master_id == master_id, "move to another master")
            return self.appointments.relocate(appointment_id, master_id, time)
        except BookingError as e:
            logger.warning(f"Move of {appointment_id} rejected ({type(e).__name__}): {e.message}")
            raise

    def update_appointment(self, appointment_id: str, patch: Dict,
                           user: Optional[User] = None) -> Appointment:
        try:
            if user is not None:
                self._require_edit(user, appointment_id)
            return self.appointments.update(appointment_id, patch)
        except BookingError as e:
            logger.warning(f"Update of {appointment_id} rejected: {e.message}")
            raise

    def delete_appointment(self, appointment_id: str, user: Optional[User] = None) -> None:
        try:
            if user is not None:
                self._require_edit(user, appointment_id)
            self.appointments.delete(appointment_id)
        except BookingError as e:
            logger.warning(f"Delete of {appointment_id} rejected ({type(e).__name__}): {e.message}")
            raise

    def _require_edit(self, user: User, appointment_id: str) -> None:
        appointment = self.appointments.get(appointment_id)
        require(can_edit_appointment(user, appointment), "edit appointment")

    def get_appointments_for_date(self, day: date) -> List[Appointment]:
        return self.appointments.for_date(day)

    def get_appointments_for_master(self, master_id: str, day: date) -> List[Appointment]:
        return self.appointments.for_master(master_id, day)

    # Аналитика

    def get_client_analytics(self, client_id: str, user: Optional[User] = None) -> ClientAnalytics:
        if user is not None:
            require(can_view_client_details(user), "view client analytics")
        with self._lock:
            return self.aggregator.analytics_for(client_id)

    def get_client_visits(self, client_id: str) -> List[ClientVisit]:
        with self._lock:
            return self.aggregator.visits_for(client_id)

    def get_recommended_services(self, client_id: str) -> List[Service]:
        with self._lock:
            return self.aggregator.recommended_services(client_id)

    # Касса

    def add_transaction(self, transaction: Dict, user: Optional[User] = None) -> CashTransaction:
        if user is not None:
            require(can_manage_cash(user), "record cash transaction")
        data = dict(transaction)
        if "date" in data:
            data["when"] = data.pop("date")
        data.setdefault("created_by", user.id if user else "system")
        try:
            unknown = sorted(set(data) - set(TRANSACTION_FIELDS))
            if unknown:
                raise ValidationError(f"Unknown transaction field: {unknown[0]}", field=unknown[0])
            for name in ("type", "amount"):
                if name not in data:
                    raise ValidationError(f"Missing transaction field: {name}", field=name)
            return self.ledger.record(**data)
        except BookingError as e:
            logger.warning(f"Transaction rejected: {e.message}")
            raise

    def get_daily_revenue(self, day: date):
        return self.ledger.daily_revenue(day)

    def get_balance(self):
        return self.ledger.balance()


def _draft(master_id: str) -> Appointment:
    # Только для проверки прав, в хранилище не попадает
    now = datetime.now()
    return Appointment(id="", client_id="", client_name="", client_phone="",
                       master_id=master_id, services=(), start_time=now, end_time=now,
                       created_at=now)


def main():
    from storage import SqlStorage

    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    system = BookingSystem(storage=SqlStorage())
    system.save()
    today = date.today()
    for master in system.list_masters(active_only=True):
        booked = system.get_appointments_for_master(master.id, today)
        logger.info(f"{master.name}: {len(booked)} appointments today")


if __name__ == "__main__":
    main()
