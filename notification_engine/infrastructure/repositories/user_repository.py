"""Read access to the users notifications are delivered to."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from notification_engine.domain.entities import Role, User
from notification_engine.infrastructure.models import RoleModel, UserModel
from notification_engine.utils import ensure_app_timezone


class UserRepository:
    """Query user entities and their roles."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.id == user_id)
            .first()
        )
        return self._to_entity(model) if model else None

    def list_active_ids(self) -> set[int]:
        rows = self.session.query(UserModel.id).filter(UserModel.is_active.is_(True))
        return {row.id for row in rows}

    def list_active_ids_by_roles(self, aliases: Iterable[str]) -> set[int]:
        normalized = {alias.strip().lower() for alias in aliases if alias and alias.strip()}
        if not normalized:
            return set()
        rows = (
            self.session.query(UserModel.id)
            .join(RoleModel, UserModel.role_id == RoleModel.id)
            .filter(UserModel.is_active.is_(True))
            .filter(func.lower(RoleModel.alias).in_(normalized))
        )
        return {row.id for row in rows}

    def get_by_email(self, email: str) -> User | None:
        model = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.role))
            .filter(UserModel.email == email)
            .first()
        )
        return self._to_entity(model) if model else None

    def ensure_role(self, *, name: str, alias: str) -> Role:
        """Return the role with ``alias``, creating it when missing."""

        model = self.session.query(RoleModel).filter(RoleModel.alias == alias).first()
        if model is None:
            model = RoleModel(name=name, alias=alias)
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return Role(id=model.id, name=model.name, alias=model.alias)

    def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            role_id=user.role.id,
            name=user.name,
            email=user.email,
            is_active=user.is_active,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        if model.role is None:
            self.session.refresh(model, attribute_names=["role"])
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        role_model = model.role
        role = Role(id=role_model.id, name=role_model.name, alias=role_model.alias)
        return User(
            id=model.id,
            role=role,
            name=model.name,
            email=model.email,
            is_active=bool(model.is_active),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["UserRepository"]
