"""Audience descriptors selecting the recipients of a notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union

from notification_engine.domain.errors import NotificationValidationError


class TargetAudience(str, Enum):
    """Persisted discriminator of an audience descriptor."""

    ALL_USERS = "all_users"
    SPECIFIC_ROLES = "specific_roles"
    INDIVIDUAL_USERS = "individual_users"


@dataclass(frozen=True)
class AllUsers:
    """Every active user."""

    kind = TargetAudience.ALL_USERS


@dataclass(frozen=True)
class SpecificRoles:
    """Active users whose role alias is one of ``roles``."""

    roles: tuple[str, ...] = field(default_factory=tuple)

    kind = TargetAudience.SPECIFIC_ROLES


@dataclass(frozen=True)
class IndividualUsers:
    """Exactly the listed user ids, whether or not they exist."""

    user_ids: tuple[int, ...] = field(default_factory=tuple)

    kind = TargetAudience.INDIVIDUAL_USERS


AudienceDescriptor = Union[AllUsers, SpecificRoles, IndividualUsers]


def build_audience(
    target: TargetAudience | str,
    *,
    roles: Iterable[str] | None = None,
    user_ids: Iterable[int] | None = None,
) -> AudienceDescriptor:
    """Return the descriptor for ``target`` or raise a validation error."""

    try:
        target = TargetAudience(target)
    except ValueError as exc:
        raise NotificationValidationError(f"Invalid target audience: {target}") from exc

    if target is TargetAudience.ALL_USERS:
        return AllUsers()

    if target is TargetAudience.SPECIFIC_ROLES:
        cleaned = tuple(
            dict.fromkeys(role.strip() for role in roles or () if role and role.strip())
        )
        if not cleaned:
            raise NotificationValidationError(
                "Target roles must be specified for specific_roles audience"
            )
        return SpecificRoles(roles=cleaned)

    ids = tuple(dict.fromkeys(int(user_id) for user_id in user_ids or ()))
    if not ids:
        raise NotificationValidationError(
            "Target user IDs must be specified for individual_users audience"
        )
    return IndividualUsers(user_ids=ids)


def audience_roles(descriptor: AudienceDescriptor) -> list[str] | None:
    """Return the role list stored alongside ``descriptor``."""

    if isinstance(descriptor, SpecificRoles):
        return list(descriptor.roles)
    return None


def audience_user_ids(descriptor: AudienceDescriptor) -> list[int] | None:
    """Return the user id list stored alongside ``descriptor``."""

    if isinstance(descriptor, IndividualUsers):
        return list(descriptor.user_ids)
    return None


__all__ = [
    "TargetAudience",
    "AllUsers",
    "SpecificRoles",
    "IndividualUsers",
    "AudienceDescriptor",
    "build_audience",
    "audience_roles",
    "audience_user_ids",
]
