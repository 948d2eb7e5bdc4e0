"""Request-scoped actor resolution.

The caller's role is read once from users.role and carried as an Actor for
the rest of the request.
"""
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from thesis_hub.database import get_db
from thesis_hub.errors import AdminRequired
from thesis_hub.models.user import User, UserRole


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def get_actor(
    actor_id: str = Query(..., description="ID of the user performing the action"),
    db: Session = Depends(get_db),
) -> Actor:
    user = db.query(User).filter(User.user_id == actor_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Actor not found")
    return Actor(user_id=user.user_id, role=user.role)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise AdminRequired(actor.user_id)
    return actor
