"""Domain entity representing a user role."""

from dataclasses import dataclass


@dataclass
class Role:
    """Role assigned to a user; ``alias`` is what audiences target."""

    id: int
    name: str
    alias: str


__all__ = ["Role"]
