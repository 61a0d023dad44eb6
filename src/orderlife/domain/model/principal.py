"""The already-authenticated caller of a mutating operation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """Resolved identity handed in by the auth layer.

    The lifecycle core records ``id`` in the audit trail; it does not
    re-check ``role``.
    """

    id: str
    role: str = "admin"
