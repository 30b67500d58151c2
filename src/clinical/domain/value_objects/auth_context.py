"""Caller identity as established by the upstream authorizer."""

from dataclasses import dataclass, field
from typing import FrozenSet

from clinical.domain.value_objects.scope import Scope


@dataclass(frozen=True, slots=True)
class AuthContext:
    user_id: str
    display_name: str
    clinic_id: str
    scopes: FrozenSet[Scope] = field(default_factory=frozenset)

    def has_scope(self, scope: Scope) -> bool:
        return scope in self.scopes
