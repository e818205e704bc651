"""
Хранение состояния студии в базе данных через SQLAlchemy.
"""

import logging

from sqlalchemy.orm import sessionmaker

from db_config import engine as default_engine, get_db
from entities import (Appointment, CashTransaction, Client, Master, Service, StudioSnapshot,
                      WorkDay, WorkSchedule)
from models import (AppointmentRow, AppointmentServiceRow, Base, CashTransactionRow, ClientRow,
                    MasterRow, ServiceRow, WorkDayRow)

logger = logging.getLogger(__name__)


class SqlStorage:
    """
    Загрузка и сохранение всего снимка студии.
    save() заменяет сохраненное состояние целиком.
    """

    def __init__(self, engine=None):
        self.engine = engine or default_engine
        Base.metadata.create_all(bind=self.engine)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def is_empty(self) -> bool:
        db = next(get_db(self.session_factory))
        try:
            return db.query(MasterRow).count() == 0 and db.query(ServiceRow).count() == 0
        finally:
            db.close()

    def load(self) -> StudioSnapshot:
        db = next(get_db(self.session_factory))
        try:
            return StudioSnapshot(
                masters=[_master_from_row(r) for r in db.query(MasterRow).order_by(MasterRow.id).all()],
                services=[_service_from_row(r) for r in db.query(ServiceRow).order_by(ServiceRow.id).all()],
                clients=[_client_from_row(r) for r in db.query(ClientRow).order_by(ClientRow.created_at).all()],
                appointments=[_appointment_from_row(r)
                              for r in db.query(AppointmentRow).order_by(AppointmentRow.start_time).all()],
                transactions=[_transaction_from_row(r)
                              for r in db.query(CashTransactionRow).order_by(CashTransactionRow.date).all()],
            )
        finally:
            db.close()

    def save(self, snapshot: StudioSnapshot) -> None:
        db = next(get_db(self.session_factory))
        try:
            for table in (AppointmentServiceRow, AppointmentRow, CashTransactionRow,
                          ClientRow, WorkDayRow, MasterRow, ServiceRow):
                db.query(table).delete(synchronize_session=False)

            db.add_all(_master_to_row(m) for m in snapshot.masters)
            db.add_all(_service_to_row(s) for s in snapshot.services)
            db.add_all(_client_to_row(c) for c in snapshot.clients)
            db.add_all(_appointment_to_row(a) for a in snapshot.appointments)
            db.add_all(_transaction_to_row(t) for t in snapshot.transactions)
            db.commit()
            logger.info(f"Studio saved: {len(snapshot.appointments)} appointments, "
                        f"{len(snapshot.transactions)} transactions")
        except Exception as e:
            db.rollback()
            logger.error(f"Error saving studio state: {e}")
            raise
        finally:
            db.close()


def _master_to_row(master: Master) -> MasterRow:
    return MasterRow(
        id=master.id,
        name=master.name,
        color=master.color,
        is_active=master.is_active,
        work_days=[
            WorkDayRow(weekday=i, start_time=day.start, end_time=day.end, is_working=day.is_working)
            for i, day in enumerate(master.schedule.days)
        ],
    )


def _master_from_row(row: MasterRow) -> Master:
    days = {d.weekday: WorkDay(d.start_time, d.end_time, d.is_working) for d in row.work_days}
    return Master(
        id=row.id,
        name=row.name,
        color=row.color,
        is_active=row.is_active,
        schedule=WorkSchedule(tuple(days[i] for i in range(7))),
    )


def _service_to_row(service: Service) -> ServiceRow:
    return ServiceRow(id=service.id, name=service.name, price=service.price,
                      duration=service.duration, category=service.category,
                      color=service.color, is_active=service.is_active)


def _service_from_row(row: ServiceRow) -> Service:
    return Service(id=row.id, name=row.name, price=row.price, duration=row.duration,
                   category=row.category, color=row.color, is_active=row.is_active)


def _client_to_row(client: Client) -> ClientRow:
    return ClientRow(
        id=client.id,
        name=client.name,
        phone=client.phone,
        email=client.email,
        notes=client.notes,
        total_visits=client.total_visits,
        favorite_services=",".join(client.favorite_services),
        created_at=client.created_at,
        last_visit=client.last_visit,
    )


def _client_from_row(row: ClientRow) -> Client:
    return Client(
        id=row.id,
        name=row.name,
        phone=row.phone,
        email=row.email,
        notes=row.notes,
        total_visits=row.total_visits,
        favorite_services=tuple(s for s in row.favorite_services.split(",") if s),
        created_at=row.created_at,
        last_visit=row.last_visit,
    )


def _appointment_to_row(appointment: Appointment) -> AppointmentRow:
    return AppointmentRow(
        id=appointment.id,
        client_id=appointment.client_id,
        client_name=appointment.client_name,
        client_phone=appointment.client_phone,
        master_id=appointment.master_id,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status,
        notes=appointment.notes,
        created_at=appointment.created_at,
        created_by=appointment.created_by,
        services=[
            AppointmentServiceRow(position=i, service_id=sid)
            for i, sid in enumerate(appointment.services)
        ],
    )


def _appointment_from_row(row: AppointmentRow) -> Appointment:
    return Appointment(
        id=row.id,
        client_id=row.client_id,
        client_name=row.client_name,
        client_phone=row.client_phone,
        master_id=row.master_id,
        services=tuple(s.service_id for s in row.services),
        start_time=row.start_time,
        end_time=row.end_time,
        status=row.status,
        notes=row.notes,
        created_at=row.created_at,
        created_by=row.created_by,
    )


def _transaction_to_row(transaction: CashTransaction) -> CashTransactionRow:
    return CashTransactionRow(
        id=transaction.id,
        date=transaction.date,
        type=transaction.type,
        amount=transaction.amount,
        category=transaction.category,
        description=transaction.description,
        master_id=transaction.master_id,
        appointment_id=transaction.appointment_id,
        created_by=transaction.created_by,
    )


def _transaction_from_row(row: CashTransactionRow) -> CashTransaction:
    return CashTransaction(
        id=row.id,
        date=row.date,
        type=row.type,
        amount=row.amount,
        category=row.category,
        description=row.description,
        master_id=row.master_id,
        appointment_id=row.appointment_id,
        created_by=row.created_by,
    )
