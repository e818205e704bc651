"""
Хранилище записей: создание, смена статуса, перенос, удаление и выборки.
Инвариант: у одного мастера неотмененные записи не пересекаются.
"""

import logging
import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union

from analytics import FAVORITES_LIMIT, rank_services
from availability import AvailabilityChecker
from catalog import Catalog
from entities import Appointment, AppointmentFormData, AppointmentStatus, Client, Service, new_id
from errors import ConflictError, NotFoundError, ValidationError
from time_utils import TimeLike, add_minutes, combine, parse_date

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("status", "notes", "services")


class TransitionPolicy:
    """Разрешает любые переходы статуса."""

    def check(self, current: str, new: str) -> None:
        pass


class TerminalStatesPolicy(TransitionPolicy):
    """Запрещает выходить из выполненной или отмененной записи."""

    terminal = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)

    def check(self, current: str, new: str) -> None:
        if current in self.terminal and new != current:
            raise ValidationError(f"Cannot change status from {current} to {new}", field="status")


class AppointmentStore:
    def __init__(self, catalog: Catalog, appointments: Iterable[Appointment] = (),
                 policy: Optional[TransitionPolicy] = None, lock=None):
        self.catalog = catalog
        self.policy = policy or TransitionPolicy()
        self._lock = lock or threading.RLock()
        self._appointments: Dict[str, Appointment] = {a.id: a for a in appointments}
        self.checker = AvailabilityChecker(catalog, self)

    # Создание

    def create(self, form: AppointmentFormData, created_by: str = "system",
               now: Optional[datetime] = None) -> Appointment:
        name = (form.client_name or "").strip()
        phone = (form.client_phone or "").strip()
        if not name:
            raise ValidationError("Client name is required", field="client_name")
        if not phone:
            raise ValidationError("Client phone is required", field="client_phone")

        with self._lock:
            start_at, end_at = self._prepare(form.master_id, form.services, form.date, form.time)
            client = self.catalog.resolve_client(name, phone, now=now)
            return self._commit(client, form.master_id, form.services, start_at, end_at,
                                form.notes, created_by, now)

    def create_for_client(self, client_id: str, master_id: str, service_ids: Sequence[str],
                          day: date, time: TimeLike, notes: Optional[str] = None,
                          created_by: str = "system", now: Optional[datetime] = None) -> Appointment:
        with self._lock:
            client = self.catalog.get_client(client_id)
            start_at, end_at = self._prepare(master_id, service_ids, day, time)
            return self._commit(client, master_id, service_ids, start_at, end_at,
                                notes, created_by, now)

    def _prepare(self, master_id: str, service_ids: Sequence[str], day: date, time: TimeLike):
        if not master_id:
            raise ValidationError("Master is required", field="master_id")
        if not service_ids:
            raise ValidationError("Select at least one service", field="services")
        if day is None:
            raise ValidationError("Date is required", field="date")
        if not time:
            raise ValidationError("Time slot is required", field="time")
        day = parse_date(day)

        master = self.catalog.get_master(master_id)
        if not master.is_active:
            raise ValidationError(f"Master {master_id} is not active", field="master_id")
        self._active_services(service_ids)

        duration = self.catalog.total_duration(service_ids)
        start_at = combine(day, time)
        if not self.checker.is_available(master_id, day, start_at.time(), duration):
            logger.warning(f"Slot {start_at} is not available for master {master_id}")
            raise ConflictError("Slot is no longer available", field="time")
        return start_at, add_minutes(start_at, duration)

    def _active_services(self, service_ids: Sequence[str]) -> List[Service]:
        services = [self.catalog.get_service(sid) for sid in service_ids]
        for service in services:
            if not service.is_active:
                raise ValidationError(f"Service {service.id} is not active", field="services")
        return services

    def _commit(self, client: Client, master_id: str, service_ids: Sequence[str],
                start_at: datetime, end_at: datetime, notes: Optional[str],
                created_by: str, now: Optional[datetime]) -> Appointment:
        appointment = Appointment(
            id=new_id("apt"),
            client_id=client.id,
            client_name=client.name,
            client_phone=client.phone,
            master_id=master_id,
            services=tuple(service_ids),
            start_time=start_at,
            end_time=end_at,
            status=AppointmentStatus.NEW,
            notes=(notes or "").strip() or None,
            created_at=now or datetime.now(),
            created_by=created_by,
        )
        self._appointments[appointment.id] = appointment

        history = [a for a in self.for_client(client.id) if not a.is_cancelled]
        favorites = rank_services(history)[:FAVORITES_LIMIT]
        self.catalog.update_client(
            client.id,
            total_visits=client.total_visits + 1,
            last_visit=start_at,
            favorite_services=tuple(service_id for service_id, _ in favorites),
        )
        logger.info(f"Appointment created: {appointment.id} master={master_id} "
                    f"{start_at:%Y-%m-%d %H:%M}-{end_at:%H:%M}")
        return appointment

    # Изменение

    def _get(self, appointment_id: str) -> Appointment:
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("appointment", appointment_id)
        return appointment

    def update_status(self, appointment_id: str, new_status: str) -> Appointment:
        return self.update(appointment_id, {"status": new_status})

    def update(self, appointment_id: str, patch: dict) -> Appointment:
        """
        Частичное обновление: status, notes, services.
        Смена услуг пересчитывает end_time и заново проверяет время.
        """
        unknown = set(patch) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                                  field=sorted(unknown)[0])

        with self._lock:
            current = self._get(appointment_id)
            changes = {}

            status = patch.get("status", current.status)
            if status not in AppointmentStatus.ALL:
                raise ValidationError(f"Unknown status: {status}", field="status")
            if status != current.status:
                self.policy.check(current.status, status)
                changes["status"] = status

            if "notes" in patch:
                changes["notes"] = (patch["notes"] or "").strip() or None

            end_at = current.end_time
            if "services" in patch:
                service_ids = tuple(patch["services"] or ())
                if not service_ids:
                    raise ValidationError("Select at least one service", field="services")
                self._active_services(service_ids)
                end_at = add_minutes(current.start_time, self.catalog.total_duration(service_ids))
                changes["services"] = service_ids
                changes["end_time"] = end_at

            updated = replace(current, **changes)
            if not updated.is_cancelled:
                if "services" in changes:
                    free = self.checker.is_available(
                        updated.master_id, updated.date, updated.start_time.time(),
                        self.catalog.total_duration(updated.services), exclude_id=updated.id)
                elif current.is_cancelled:
                    # Отмена освобождала время, его могли занять
                    free = not self.checker.has_conflict(
                        updated.master_id, updated.start_time, updated.end_time, exclude_id=updated.id)
                else:
                    free = True
                if not free:
                    logger.warning(f"Update of {appointment_id} rejected: slot is occupied")
                    raise ConflictError("Slot is no longer available", field="time")

            self._appointments[appointment_id] = updated
            logger.info(f"Appointment {appointment_id} updated: {', '.join(sorted(changes)) or 'no changes'}")
            return updated

    def relocate(self, appointment_id: str, new_master_id: str,
                 new_start: Union[datetime, TimeLike]) -> bool:
        """
        Переносит запись к мастеру и на время. Мастер и время меняются вместе
        или не меняются вовсе. Если передано только время, дата остается прежней.
        """
        with self._lock:
            current = self._get(appointment_id)
            if isinstance(new_start, datetime):
                start_at = new_start
            else:
                start_at = combine(current.date, new_start)
            duration = self.catalog.total_duration(current.services)

            if not self.checker.is_available(new_master_id, start_at.date(), start_at.time(),
                                             duration, exclude_id=appointment_id):
                logger.warning(f"Relocation of {appointment_id} to {new_master_id} "
                               f"{start_at:%Y-%m-%d %H:%M} rejected")
                return False

            self._appointments[appointment_id] = replace(
                current,
                master_id=new_master_id,
                start_time=start_at,
                end_time=add_minutes(start_at, duration),
            )
            logger.info(f"Appointment {appointment_id} moved to {new_master_id} {start_at:%Y-%m-%d %H:%M}")
            return True

    def delete(self, appointment_id: str) -> None:
        # Счетчики визитов клиента не пересчитываются
        with self._lock:
            self._get(appointment_id)
            del self._appointments[appointment_id]
            logger.info(f"Appointment deleted: {appointment_id}")

    # Выборки

    def _sorted(self, appointments: Iterable[Appointment]) -> List[Appointment]:
        return sorted(appointments, key=lambda a: (a.start_time, a.id))

    def get(self, appointment_id: str) -> Appointment:
        with self._lock:
            return self._get(appointment_id)

    def all(self) -> List[Appointment]:
        with self._lock:
            return self._sorted(self._appointments.values())

    def for_date(self, day: date) -> List[Appointment]:
        day = parse_date(day)
        with self._lock:
            return self._sorted(a for a in self._appointments.values() if a.date == day)

    def for_master(self, master_id: str, day: date) -> List[Appointment]:
        day = parse_date(day)
        with self._lock:
            return self._sorted(
                a for a in self._appointments.values()
                if a.master_id == master_id and a.date == day
            )

    def for_client(self, client_id: str) -> List[Appointment]:
        with self._lock:
            return self._sorted(a for a in self._appointments.values() if a.client_id == client_id)

    def appointments_for_master(self, master_id: str, day: date) -> List[Appointment]:
        return self.for_master(master_id, day)
