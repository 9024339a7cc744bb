"""Lock rule matching with first-match-wins semantics."""
from __future__ import annotations

from typing import Iterable, Optional

from chart_models import ElementId, ElementKind, LockFrame, LockRule


def _same_id(a: ElementId, b: ElementId) -> bool:
    # Ids may arrive as 1 or "1" depending on the source payload
    return a == b or str(a) == str(b)


def applies_to(rule: LockRule, kind: ElementKind, element_id: ElementId) -> bool:
    """Return True if ``rule`` selects the element ``(kind, element_id)``."""
    return ElementKind(rule.kind) is ElementKind(kind) and _same_id(rule.id, element_id)


def lock_frame_for(
    kind: ElementKind, element_id: ElementId, rules: Iterable[LockRule]
) -> Optional[LockFrame]:
    """Return the frame of the first matching rule; later matches are shadowed."""
    for rule in rules:
        if applies_to(rule, kind, element_id):
            return LockFrame(rule.frame)
    return None


def should_lock(kind: ElementKind, element_id: ElementId, rules: Iterable[LockRule]) -> bool:
    return lock_frame_for(kind, element_id, rules) is not None
