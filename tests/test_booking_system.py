import logging
from datetime import date, datetime

import pytest

from booking_system import DEFAULT_MASTERS, DEFAULT_SERVICES, BookingSystem
from conftest import MONDAY
from entities import AppointmentStatus, Role, User, WorkSchedule
from errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError

ADMIN = User(id="admin", name="Адміністратор", role=Role.ADMIN)
OLENA = User(id="olena-user", name="Олена", role=Role.MASTER, master_id="olena")
GUEST = User(id="guest", name="Гість")


def booking(**overrides):
    form = {
        "client_name": "Ольга",
        "client_phone": "0501112233",
        "master_id": "olena",
        "services": ["svc-manicure"],
        "date": MONDAY,
        "time": "10:00",
    }
    form.update(overrides)
    return form


def test_new_studio_gets_default_catalog():
    system = BookingSystem()
    assert [m.id for m in system.list_masters()] == [m.id for m in DEFAULT_MASTERS]
    assert len(system.list_services()) == len(DEFAULT_SERVICES)
    assert system.get_available_slots("master-1", MONDAY, ["svc-1"])[0] == "09:00"


def test_booking_flow(system):
    slots = system.get_available_slots("olena", MONDAY, ["svc-manicure"])
    assert "10:00" in slots

    appointment = system.create_appointment(booking(time="10:00"))
    assert appointment.start_time == datetime(2026, 10, 19, 10, 0)
    assert "10:00" not in system.get_available_slots("olena", MONDAY, ["svc-manicure"])
    assert not system.is_time_slot_available("olena", MONDAY, "10:30", 30)
    assert system.is_time_slot_available("olena", MONDAY, "11:00", 30)

    with pytest.raises(ConflictError):
        system.create_appointment(booking(time="10:30", services=["svc-design"]))


def test_two_step_booking(system):
    client_id = system.resolve_client("Ольга", "0501112233")
    assert system.resolve_client("ольга", "050 111 22 33") == client_id

    appointment = system.book_for_client(client_id, "olena", ["svc-gel"], MONDAY, "09:00")
    assert system.get_client_visits(client_id)[0].id == appointment.id
    assert len(system.list_clients()) == 1


def test_move_update_delete(system):
    appointment = system.create_appointment(booking())
    system.create_appointment(booking(master_id="iryna", client_phone="0679990000", client_name="Марта"))

    assert not system.move_appointment(appointment.id, "iryna", "10:00")
    assert system.get_appointments_for_master("olena", MONDAY)[0].id == appointment.id
    assert system.move_appointment(appointment.id, "iryna", "11:00")
    assert system.get_appointments_for_master("olena", MONDAY) == []

    updated = system.update_appointment(appointment.id, {"status": AppointmentStatus.CONFIRMED})
    assert updated.status == AppointmentStatus.CONFIRMED

    system.delete_appointment(appointment.id)
    assert len(system.get_appointments_for_date(MONDAY)) == 1
    with pytest.raises(NotFoundError):
        system.update_appointment(appointment.id, {"notes": "x"})


def test_analytics_through_facade(system):
    first = system.create_appointment(booking())
    system.create_appointment(booking(time="12:00", services=["svc-gel"]))

    analytics = system.get_client_analytics(first.client_id)
    assert analytics.total_spent == 800
    assert analytics.average_check == 400
    assert [s.id for s in system.get_recommended_services(first.client_id)] == \
        [s.id for s in analytics.recommended_services]


def test_cash_through_facade(system):
    system.add_transaction({"type": "income", "amount": 350, "date": datetime(2026, 10, 19, 11, 0)})
    system.add_transaction({"type": "expense", "amount": 100, "category": "Оренда"})
    with pytest.raises(ValidationError):
        system.add_transaction({"type": "income", "amount": 0})

    assert system.get_daily_revenue(MONDAY) == 350
    assert system.get_balance() == 250


def test_catalog_admin(system):
    service = system.add_service("Парафінотерапія", 300, 40, "Догляд", user=ADMIN)
    assert system.update_service(service.id, price=320, user=ADMIN).price == 320
    system.delete_service(service.id, user=ADMIN)
    assert service.id not in [s.id for s in system.list_services(active_only=True)]
    assert service.id in [s.id for s in system.list_services()]

    master = system.add_master("Дарина", WorkSchedule.uniform("12:00", "20:00"), user=ADMIN)
    system.delete_master(master.id, user=ADMIN)
    assert not system.is_time_slot_available(master.id, MONDAY, "12:00", 30)

    with pytest.raises(ValidationError):
        system.add_service("Пусто", -1, 30, user=ADMIN)
    with pytest.raises(PermissionDeniedError):
        system.add_service("Пусто", 100, 30, user=OLENA)


class TestPermissions:
    def test_guest_cannot_book_or_view_clients(self, system):
        with pytest.raises(PermissionDeniedError):
            system.create_appointment(booking(), user=GUEST)
        with pytest.raises(PermissionDeniedError):
            system.list_clients(user=GUEST)

    def test_master_edits_only_own_appointments(self, system):
        own = system.create_appointment(booking(), user=OLENA)
        other = system.create_appointment(booking(master_id="iryna", client_phone="0679990000"), user=ADMIN)

        assert own.created_by == OLENA.id
        system.update_appointment(own.id, {"status": AppointmentStatus.CONFIRMED}, user=OLENA)
        with pytest.raises(PermissionDeniedError):
            system.update_appointment(other.id, {"status": AppointmentStatus.CANCELLED}, user=OLENA)
        with pytest.raises(PermissionDeniedError):
            system.move_appointment(own.id, "iryna", "14:00", user=OLENA)
        with pytest.raises(PermissionDeniedError):
            system.create_appointment(booking(master_id="iryna", time="15:00"), user=OLENA)
        assert system.get_appointments_for_master("iryna", MONDAY)[0].status == AppointmentStatus.NEW

    def test_only_admin_records_cash(self, system):
        with pytest.raises(PermissionDeniedError):
            system.add_transaction({"type": "income", "amount": 100}, user=OLENA)
        tx = system.add_transaction({"type": "income", "amount": 100}, user=ADMIN)
        assert tx.created_by == ADMIN.id

    def test_master_books_clients_only_into_own_column(self, system):
        client_id = system.resolve_client("Ольга", "0501112233")
        with pytest.raises(PermissionDeniedError):
            system.book_for_client(client_id, "iryna", ["svc-gel"], MONDAY, "11:00", user=OLENA)
        assert system.get_appointments_for_master("iryna", MONDAY) == []

        own = system.book_for_client(client_id, "olena", ["svc-gel"], MONDAY, "11:00", user=OLENA)
        assert own.created_by == OLENA.id
        assert system.move_appointment(own.id, "olena", "14:00", user=OLENA)


class TestFormInput:
    def test_iso_date_string_is_accepted(self, system):
        appointment = system.create_appointment(booking(date="2026-10-19"))
        assert appointment.start_time == datetime(2026, 10, 19, 10, 0)
        assert system.get_appointments_for_date("2026-10-19")[0].id == appointment.id

    @pytest.mark.parametrize("value", ["19.10.2026", "", 20261019])
    def test_malformed_date_names_the_field(self, system, value):
        with pytest.raises(ValidationError) as excinfo:
            system.create_appointment(booking(date=value))
        assert excinfo.value.field == "date"

    def test_missing_and_unknown_keys_name_the_field(self, system):
        form = booking()
        del form["client_phone"]
        with pytest.raises(ValidationError) as excinfo:
            system.create_appointment(form)
        assert excinfo.value.field == "client_phone"

        with pytest.raises(ValidationError) as excinfo:
            system.create_appointment(booking(phone="0679990000"))
        assert excinfo.value.field == "phone"
        assert system.get_appointments_for_date(MONDAY) == []

    def test_rejections_are_logged(self, system, caplog):
        with caplog.at_level(logging.WARNING, logger="booking_system"):
            with pytest.raises(ValidationError):
                system.create_appointment(booking(date="tomorrow"))
            with pytest.raises(NotFoundError):
                system.move_appointment("apt-missing", "olena", "10:00")
            with pytest.raises(NotFoundError):
                system.delete_appointment("apt-missing")
        warnings = [r for r in caplog.records if r.name == "booking_system"]
        assert [r.levelname for r in warnings] == ["WARNING"] * 3


def test_cash_date_without_time(system):
    system.add_transaction({"type": "income", "amount": 200, "date": date(2026, 10, 19)})
    assert system.get_daily_revenue(MONDAY) == 200


@pytest.mark.parametrize("transaction, field", [
    ({"type": "income", "amount": "100"}, "amount"),
    ({"type": "income", "amount": float("nan")}, "amount"),
    ({"type": "income", "amount": 100, "date": "19.10.2026"}, "date"),
    ({"type": "income", "amount": 100, "sum": 100}, "sum"),
    ({"type": "income"}, "amount"),
])
def test_malformed_transaction_names_the_field(system, transaction, field):
    with pytest.raises(ValidationError) as excinfo:
        system.add_transaction(transaction)
    assert excinfo.value.field == field
    assert system.get_balance() == 0
