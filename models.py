"""
Модели базы данных для студии.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship

from db_config import Base


class MasterRow(Base):
    __tablename__ = 'masters'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=False, default="#3B82F6")
    is_active = Column(Boolean, nullable=False, default=True)

    work_days = relationship("WorkDayRow", back_populates="master",
                             cascade="all, delete-orphan", order_by="WorkDayRow.weekday")


class WorkDayRow(Base):
    __tablename__ = 'work_days'

    master_id = Column(String, ForeignKey('masters.id'), primary_key=True)
    weekday = Column(Integer, primary_key=True)  # 0=Пн, 6=Вс
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_working = Column(Boolean, nullable=False, default=True)

    master = relationship("MasterRow", back_populates="work_days")


class ServiceRow(Base):
    __tablename__ = 'services'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)  # в минутах
    category = Column(String, nullable=False, default="")
    color = Column(String, nullable=False, default="#06B6D4")
    is_active = Column(Boolean, nullable=False, default=True)


class ClientRow(Base):
    __tablename__ = 'clients'

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String)
    notes = Column(String)
    total_visits = Column(Integer, nullable=False, default=0)
    favorite_services = Column(String, nullable=False, default="")  # id через запятую
    created_at = Column(DateTime, nullable=False)
    last_visit = Column(DateTime)


class AppointmentRow(Base):
    __tablename__ = 'appointments'

    id = Column(String, primary_key=True)
    client_id = Column(String, ForeignKey('clients.id'), nullable=False)
    client_name = Column(String, nullable=False)
    client_phone = Column(String, nullable=False)
    master_id = Column(String, ForeignKey('masters.id'), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default='new')
    notes = Column(String)
    created_at = Column(DateTime, nullable=False)
    created_by = Column(String, nullable=False, default='system')

    services = relationship("AppointmentServiceRow", cascade="all, delete-orphan",
                            order_by="AppointmentServiceRow.position")


class AppointmentServiceRow(Base):
    __tablename__ = 'appointment_services'

    appointment_id = Column(String, ForeignKey('appointments.id'), primary_key=True)
    position = Column(Integer, primary_key=True)
    service_id = Column(String, ForeignKey('services.id'), nullable=False)


class CashTransactionRow(Base):
    __tablename__ = 'cash_transactions'

    id = Column(String, primary_key=True)
    date = Column(DateTime, nullable=False)
    type = Column(String, nullable=False)  # income, expense
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    master_id = Column(String)
    appointment_id = Column(String)
    created_by = Column(String, nullable=False, default='system')
