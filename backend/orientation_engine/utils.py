"""Miscellaneous utility helpers for the orientation engine."""
from __future__ import annotations

from enum import Enum
from typing import Union


def subject_to_string(subject: Union[Enum, int, str]) -> str:
    """Return a stable string form of a tracked subject.

    Enum members contribute their ``value`` so that ``AngleType.ASC`` and
    ``"ASC"`` share a key; anything else is simply ``str()``-ed.
    """
    if isinstance(subject, Enum):
        return str(subject.value)
    return str(subject)


def house_key(subject: Union[Enum, int, str], house: int) -> str:
    """Composite tracking key ``"{subject}:{house}"``."""
    return f"{subject_to_string(subject)}:{int(house)}"
