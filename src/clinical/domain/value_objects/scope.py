"""Permission scopes carried by an authenticated caller."""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Iterable


class Scope(str, Enum):
    NOTES_READ = "notes:read"
    NOTES_WRITE = "notes:write"
    NOTES_DELETE = "notes:delete"
    ATTACHMENTS_WRITE = "attachments:write"


# Group memberships that imply scopes on top of the explicitly granted ones
_CLINICAL_GROUPS = frozenset({"admin", "clinician", "doctor", "nurse"})
_GROUP_SCOPES = {
    "clinical": frozenset({Scope.NOTES_READ, Scope.NOTES_WRITE, Scope.ATTACHMENTS_WRITE}),
    "admin": frozenset({Scope.NOTES_DELETE}),
    "receptionist": frozenset({Scope.NOTES_READ}),
}


def parse_scopes(values: Iterable[str]) -> FrozenSet[Scope]:
    """Known scope strings out of ``values``; unknown ones are ignored."""
    known = {s.value: s for s in Scope}
    return frozenset(known[v] for v in values if v in known)


def resolve_scopes(groups: Iterable[str], granted: Iterable[str]) -> FrozenSet[Scope]:
    """
    Effective scopes for a caller.

    Group names may themselves be scope strings. Clinical staff (admin,
    clinician, doctor, nurse) read and write notes and attachments, only
    admins delete notes, and receptionists are read-only.
    """
    groups = {g.strip() for g in groups if g and g.strip()}
    scopes = set(parse_scopes(groups)) | set(parse_scopes(granted))
    if groups & _CLINICAL_GROUPS:
        scopes |= _GROUP_SCOPES["clinical"]
    if "admin" in groups:
        scopes |= _GROUP_SCOPES["admin"]
    if "receptionist" in groups:
        scopes |= _GROUP_SCOPES["receptionist"]
    return frozenset(scopes)


ALL_SCOPES: FrozenSet[Scope] = frozenset(Scope)
