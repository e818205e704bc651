"""
Модуль конфигурации: переменные окружения и подключение к базе данных.
"""

import os
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# Загрузка переменных окружения
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///beauty_salon.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Сетка слотов для интерфейса записи
SLOT_START_HOUR = int(os.getenv("SLOT_START_HOUR", "9"))
SLOT_END_HOUR = int(os.getenv("SLOT_END_HOUR", "20"))
SLOT_STEP_MINUTES = int(os.getenv("SLOT_STEP_MINUTES", "15"))

# Базовый класс для всех моделей
Base = declarative_base()


def make_engine(url: str = DATABASE_URL):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Необходимо для SQLite
    return create_engine(url, connect_args=connect_args, echo=SQL_ECHO)


engine = make_engine()

# Создаем фабрику сессий
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db(session_factory=SessionLocal) -> Generator[Session, None, None]:
    """
    Генератор сессий базы данных.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
