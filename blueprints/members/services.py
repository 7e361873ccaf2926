# blueprints/members/services.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol

from extensions import db
from models import User


@dataclass(frozen=True)
class Volunteer:
    id: int
    name: str
    email: Optional[str]


class MemberDirectory(Protocol):
    def resolve(self, member_id: int) -> Optional[Volunteer]:
        ...

    def display_names(self, member_ids: Iterable[int]) -> Dict[int, str]:
        ...


class SqlMemberDirectory:
    """Member lookups backed by the users table."""

    def resolve(self, member_id: int) -> Optional[Volunteer]:
        user = db.session.get(User, member_id)
        if user is None:
            return None
        return Volunteer(id=user.id, name=user.full_name, email=user.email or None)

    def display_names(self, member_ids: Iterable[int]) -> Dict[int, str]:
        ids = {i for i in member_ids if i is not None}
        if not ids:
            return {}
        rows = User.query.filter(User.id.in_(ids)).all()
        return {u.id: u.full_name for u in rows}


def is_admin(user) -> bool:
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return bool(getattr(user, "is_admin", False))
