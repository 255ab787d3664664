# src/swift_task/core/users.py

"""
Fixed user directory.

Users are seeded here and never created at runtime. Login is a
case-insensitive display-name match; there is no password.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class User:
    id: str
    display_name: str
    join_date: date


STATIC_USERS: tuple[User, ...] = (
    User(id="user_1", display_name="Ali Mehroz", join_date=date(2024, 1, 15)),
    User(id="user_2", display_name="Abdul Rehman", join_date=date(2024, 2, 20)),
    User(id="user_3", display_name="Elon Musk", join_date=date(2024, 3, 10)),
)


def find_user(display_name: str) -> User | None:
    name = (display_name or "").strip().lower()
    if not name:
        return None
    for user in STATIC_USERS:
        if user.display_name.lower() == name:
            return user
    return None


def get_user_by_id(user_id: str | None) -> User | None:
    if not user_id:
        return None
    for user in STATIC_USERS:
        if user.id == user_id:
            return user
    return None
