"""
Справочники студии: мастера, услуги и клиенты.
"""

import logging
from dataclasses import fields, replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from entities import Client, Master, Service, WorkSchedule, new_id
from errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class Catalog:
    """
    Реестр мастеров, услуг и клиентов.

    Проверка доступности и аналитика читают его через get_master/get_service,
    изменения делает только BookingSystem под своей блокировкой.
    Мастера и услуги не удаляются физически: на них ссылается история записей.
    """

    def __init__(self, masters: Iterable[Master] = (), services: Iterable[Service] = (),
                 clients: Iterable[Client] = ()):
        self._masters: Dict[str, Master] = {m.id: m for m in masters}
        self._services: Dict[str, Service] = {s.id: s for s in services}
        self._clients: Dict[str, Client] = {c.id: c for c in clients}

    # Мастера

    def list_masters(self, active_only: bool = False) -> List[Master]:
        return [m for m in self._masters.values() if m.is_active or not active_only]

    def find_master(self, master_id: str) -> Optional[Master]:
        return self._masters.get(master_id)

    def get_master(self, master_id: str) -> Master:
        master = self._masters.get(master_id)
        if master is None:
            raise NotFoundError("master", master_id)
        return master

    def add_master(self, name: str, schedule: WorkSchedule, color: str = "#3B82F6") -> Master:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Master name is required", field="name")
        master = Master(id=new_id("master"), name=name, schedule=schedule, color=color)
        self._masters[master.id] = master
        logger.info(f"Master added: {master.id} ({master.name})")
        return master

    def update_master(self, master_id: str, **changes) -> Master:
        master = self.get_master(master_id)
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationError("Master name is required", field="name")
        updated = replace(master, **_editable(master, changes))
        self._masters[master_id] = updated
        return updated

    def deactivate_master(self, master_id: str) -> Master:
        return self.update_master(master_id, is_active=False)

    # Услуги

    def list_services(self, active_only: bool = False) -> List[Service]:
        return [s for s in self._services.values() if s.is_active or not active_only]

    def find_service(self, service_id: str) -> Optional[Service]:
        return self._services.get(service_id)

    def get_service(self, service_id: str) -> Service:
        service = self._services.get(service_id)
        if service is None:
            raise NotFoundError("service", service_id)
        return service

    def add_service(self, name: str, price: int, duration: int, category: str = "",
                    color: str = "#06B6D4") -> Service:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Service name is required", field="name")
        service = Service(id=new_id("svc"), name=name, price=price, duration=duration,
                          category=category, color=color)
        self._services[service.id] = service
        logger.info(f"Service added: {service.id} ({service.name})")
        return service

    def update_service(self, service_id: str, **changes) -> Service:
        service = self.get_service(service_id)
        # Цена и длительность не копируются в записи, правка меняет и прошлые итоги
        updated = replace(service, **_editable(service, changes))
        self._services[service_id] = updated
        return updated

    def deactivate_service(self, service_id: str) -> Service:
        return self.update_service(service_id, is_active=False)

    def total_duration(self, service_ids: Iterable[str]) -> int:
        return sum(self.get_service(sid).duration for sid in service_ids)

    def total_price(self, service_ids: Iterable[str]) -> int:
        total = 0
        for sid in service_ids:
            service = self._services.get(sid)
            if service:
                total += service.price
        return total

    # Клиенты

    def list_clients(self) -> List[Client]:
        return list(self._clients.values())

    def get_client(self, client_id: str) -> Client:
        client = self._clients.get(client_id)
        if client is None:
            raise NotFoundError("client", client_id)
        return client

    def find_client(self, name: str, phone: str) -> Optional[Client]:
        """Сначала точное совпадение телефона, затем имя и телефон без учета регистра."""
        phone = phone.strip()
        for client in self._clients.values():
            if client.phone == phone:
                return client
        normalized_name = name.strip().lower()
        normalized_phone = _digits(phone)
        for client in self._clients.values():
            if client.name.strip().lower() == normalized_name and _digits(client.phone) == normalized_phone:
                return client
        return None

    def resolve_client(self, name: str, phone: str, now: Optional[datetime] = None) -> Client:
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name:
            raise ValidationError("Client name is required", field="client_name")
        if not phone:
            raise ValidationError("Client phone is required", field="client_phone")

        existing = self.find_client(name, phone)
        if existing:
            return existing

        client = Client(id=new_id("client"), name=name, phone=phone,
                        created_at=now or datetime.now())
        self._clients[client.id] = client
        logger.info(f"Client created: {client.id} ({client.name})")
        return client

    def update_client(self, client_id: str, **changes) -> Client:
        client = self.get_client(client_id)
        updated = replace(client, **changes)
        self._clients[client_id] = updated
        return updated


def _digits(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())


def _editable(entity, changes: Dict) -> Dict:
    """Идентификатор не меняется, неизвестные поля отклоняются."""
    names = {f.name for f in fields(entity)} - {"id"}
    for name in sorted(changes):
        if name not in names:
            raise ValidationError(f"Field cannot be updated: {name}", field=name)
    return changes
