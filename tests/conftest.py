from datetime import date

import pytest

from appointment_store import AppointmentStore
from booking_system import BookingSystem
from catalog import Catalog
from entities import AppointmentFormData, Master, Service, StudioSnapshot, WorkSchedule

MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 25)


@pytest.fixture
def services():
    return [
        Service(id="svc-manicure", name="Манікюр класичний", price=350, duration=60, category="Манікюр"),
        Service(id="svc-gel", name="Покриття гель-лак", price=450, duration=90, category="Покриття"),
        Service(id="svc-design", name="Дизайн нігтів", price=150, duration=30, category="Дизайн"),
        Service(id="svc-spa", name="SPA-догляд", price=250, duration=30, category="Догляд"),
        Service(id="svc-removal", name="Зняття покриття", price=100, duration=20, category="Манікюр"),
    ]


@pytest.fixture
def masters():
    return [
        Master(id="olena", name="Олена", schedule=WorkSchedule.uniform("09:00", "18:00")),
        Master(id="iryna", name="Ірина", schedule=WorkSchedule.uniform("10:00", "19:00")),
    ]


@pytest.fixture
def catalog(masters, services):
    return Catalog(masters, services)


@pytest.fixture
def store(catalog):
    return AppointmentStore(catalog)


@pytest.fixture
def system(masters, services):
    return BookingSystem(StudioSnapshot(masters=list(masters), services=list(services)))


@pytest.fixture
def make_form():
    def _make(time="10:00", services=("svc-manicure",), master_id="olena", day=MONDAY,
              name="Ольга", phone="0501112233", notes=None):
        return AppointmentFormData(client_name=name, client_phone=phone, master_id=master_id,
                                   services=list(services), date=day, time=time, notes=notes)
    return _make
