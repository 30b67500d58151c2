from datetime import date

import pytest

from clinical.infrastructure.keys import (
    build_attachment_storage_key,
    build_clinic_pk,
    build_note_pk,
    build_note_sk,
    note_sk_lower_bound,
    note_sk_upper_bound,
    parse_note_pk,
    parse_note_sk,
    patient_pk_prefix,
)
from shared.exceptions import MalformedKeyError


def test_note_keys_round_trip():
    pk = build_note_pk("c1", "p1")
    sk = build_note_sk(date(2024, 1, 15), "n-1")
    assert pk == "CLINIC#c1#PATIENT#p1"
    assert sk == "NOTE#2024-01-15#n-1"
    assert parse_note_pk(pk) == ("c1", "p1")
    assert parse_note_sk(sk) == ("2024-01-15", "n-1")


def test_study_date_accepts_iso_string():
    assert build_note_sk("2024-02-29", "n") == "NOTE#2024-02-29#n"


@pytest.mark.parametrize("bad", ["2024-13-01", "20240101", "yesterday", 20240101])
def test_study_date_rejects_garbage(bad):
    with pytest.raises(MalformedKeyError):
        build_note_sk(bad, "n")


@pytest.mark.parametrize("clinic_id,patient_id", [("", "p"), ("c", ""), ("c#x", "p"), ("c", "p#y")])
def test_build_rejects_bad_segments(clinic_id, patient_id):
    with pytest.raises(MalformedKeyError):
        build_note_pk(clinic_id, patient_id)


@pytest.mark.parametrize(
    "pk",
    ["CLINIC#c1", "CLINIC#c1#PATIENT#", "CLINIX#c1#PATIENT#p1", "CLINIC#c1#PATIENT#p1#extra", ""],
)
def test_parse_note_pk_rejects_malformed(pk):
    with pytest.raises(MalformedKeyError):
        parse_note_pk(pk)


@pytest.mark.parametrize("sk", ["NOTE#2024-01-01", "NOTES#2024-01-01#n", "METADATA", "NOTE##n"])
def test_parse_note_sk_rejects_malformed(sk):
    with pytest.raises(MalformedKeyError):
        parse_note_sk(sk)


def test_date_bounds_bracket_every_note_of_the_day():
    sk = build_note_sk("2024-01-15", "ffffffff-ffff-4fff-bfff-ffffffffffff")
    assert note_sk_lower_bound("2024-01-15") <= sk <= note_sk_upper_bound("2024-01-15")
    assert build_note_sk("2024-01-16", "0") > note_sk_upper_bound("2024-01-15")


def test_clinic_and_patient_prefixes():
    assert build_clinic_pk("c1") == "CLINIC#c1"
    assert build_note_pk("c1", "p9").startswith(patient_pk_prefix("c1"))
    assert not build_note_pk("c10", "p9").startswith(patient_pk_prefix("c1"))


def test_attachment_storage_key_sanitizes_file_name():
    key = build_attachment_storage_key("c1", "p1", "n1", "a1", "scan (1)/ü.pdf")
    assert key == "clinic/c1/patient/p1/note/n1/a1/scan__1___.pdf"
