"""
Права пользователей: гость только смотрит, мастер ведет свои записи,
администратор управляет всем.
"""

from typing import Optional

from entities import Appointment, Role, User
from errors import PermissionDeniedError


def can_edit_appointments(user: Optional[User]) -> bool:
    return user is not None and user.role in (Role.ADMIN, Role.MASTER)


def can_edit_appointment(user: Optional[User], appointment: Appointment) -> bool:
    if user is None:
        return False
    if user.role == Role.ADMIN:
        return True
    return user.role == Role.MASTER and user.master_id == appointment.master_id


def can_view_client_details(user: Optional[User]) -> bool:
    return can_edit_appointments(user)


def can_manage_catalog(user: Optional[User]) -> bool:
    return user is not None and user.role == Role.ADMIN


def can_manage_cash(user: Optional[User]) -> bool:
    return can_manage_catalog(user)


def require(allowed: bool, action: str) -> None:
    if not allowed:
        raise PermissionDeniedError(f"Not allowed: {action}")
