"""Expand audience descriptors into recipient user ids."""

from __future__ import annotations

from sqlalchemy.orm import Session

from notification_engine.domain.entities import (
    AllUsers,
    AudienceDescriptor,
    IndividualUsers,
    SpecificRoles,
)
from notification_engine.infrastructure.repositories import UserRepository


def resolve_audience(session: Session, descriptor: AudienceDescriptor) -> set[int]:
    """Return the ids of the users addressed by ``descriptor``.

    Individual ids are returned as given, without checking they exist.
    """

    if isinstance(descriptor, AllUsers):
        return UserRepository(session).list_active_ids()
    if isinstance(descriptor, SpecificRoles):
        return UserRepository(session).list_active_ids_by_roles(descriptor.roles)
    if isinstance(descriptor, IndividualUsers):
        return set(descriptor.user_ids)
    raise TypeError(f"Unsupported audience descriptor: {descriptor!r}")


__all__ = ["resolve_audience"]
