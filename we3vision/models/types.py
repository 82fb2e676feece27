"""
Shared column helpers.
"""

from typing import List, Type
import enum


def enum_values(enum_cls: Type[enum.Enum]) -> List[str]:
    """Persist enum *values* (e.g. "AI/ML") rather than member names."""
    return [member.value for member in enum_cls]
