"""
Исключения движка записи.
"""

from typing import Optional


class BookingError(Exception):
    """Базовая ошибка операции с записями. Никогда не фатальна для процесса."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(BookingError):
    """Пустое обязательное поле, неположительная сумма или длительность."""


class ConflictError(BookingError):
    """Время уже занято."""


class NotFoundError(BookingError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(BookingError):
    """Роль пользователя не позволяет действие."""
