import pytest

from clinical.domain.value_objects.scope import ALL_SCOPES, Scope, parse_scopes, resolve_scopes

CLINICAL = {Scope.NOTES_READ, Scope.NOTES_WRITE, Scope.ATTACHMENTS_WRITE}


@pytest.mark.parametrize("group", ["clinician", "doctor", "nurse"])
def test_clinical_groups_read_and_write(group):
    assert resolve_scopes([group], []) == CLINICAL


def test_admin_also_deletes():
    assert resolve_scopes(["admin"], []) == ALL_SCOPES


def test_receptionist_is_read_only():
    assert resolve_scopes(["receptionist"], []) == {Scope.NOTES_READ}


def test_explicit_scopes_and_groups_combine():
    scopes = resolve_scopes([" receptionist", ""], ["notes:delete", "profile"])
    assert scopes == {Scope.NOTES_READ, Scope.NOTES_DELETE}


def test_scope_named_groups_count_as_scopes():
    assert resolve_scopes(["notes:write"], []) == {Scope.NOTES_WRITE}


def test_unknown_values_grant_nothing():
    assert resolve_scopes(["visitor"], ["openid", "notes:*"]) == frozenset()
    assert parse_scopes([]) == frozenset()
