"""
Store key scheme for clinics, patients and notes.

Partition keys:
    CLINIC#{clinic_id}                        clinic metadata
    CLINIC#{clinic_id}#PATIENT#{patient_id}   patient metadata and its notes

Sort keys:
    METADATA                                  clinic / patient record
    NOTE#{YYYY-MM-DD}#{note_id}               one note, ordered by study date
"""
from __future__ import annotations

import re
from datetime import date

from shared.exceptions import MalformedKeyError

SEPARATOR = "#"
CLINIC_TOKEN = "CLINIC"
PATIENT_TOKEN = "PATIENT"
NOTE_TOKEN = "NOTE"

NOTE_PREFIX = f"{NOTE_TOKEN}{SEPARATOR}"
CLINIC_PREFIX = f"{CLINIC_TOKEN}{SEPARATOR}"
METADATA_SK = "METADATA"

# sorts after every character used in note ids
_UPPER_SENTINEL = "~"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _check_segment(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise MalformedKeyError(f"{field_name} must be a non-empty string", details={"field": field_name})
    if SEPARATOR in value:
        raise MalformedKeyError(
            f"{field_name} must not contain '{SEPARATOR}'", details={"field": field_name}
        )
    return value


def format_study_date(study_date: date | str) -> str:
    """Normalize a study date to ``YYYY-MM-DD``."""
    if isinstance(study_date, date):
        return study_date.isoformat()
    if isinstance(study_date, str) and _DATE_RE.match(study_date):
        try:
            return date.fromisoformat(study_date).isoformat()
        except ValueError:
            pass
    raise MalformedKeyError("study_date must be a YYYY-MM-DD date", details={"field": "study_date"})


def build_clinic_pk(clinic_id: str) -> str:
    return f"{CLINIC_PREFIX}{_check_segment(clinic_id, 'clinic_id')}"


def build_note_pk(clinic_id: str, patient_id: str) -> str:
    """Partition key shared by a patient record and all of its notes."""
    return SEPARATOR.join(
        (
            CLINIC_TOKEN,
            _check_segment(clinic_id, "clinic_id"),
            PATIENT_TOKEN,
            _check_segment(patient_id, "patient_id"),
        )
    )


build_patient_pk = build_note_pk


def patient_pk_prefix(clinic_id: str) -> str:
    """Prefix matching every patient partition of one clinic."""
    return f"{build_clinic_pk(clinic_id)}{SEPARATOR}{PATIENT_TOKEN}{SEPARATOR}"


def build_note_sk(study_date: date | str, note_id: str) -> str:
    return SEPARATOR.join((NOTE_TOKEN, format_study_date(study_date), _check_segment(note_id, "note_id")))


def parse_note_pk(pk: str) -> tuple[str, str]:
    """
    Split a note partition key into ``(clinic_id, patient_id)``.

    Raises:
        MalformedKeyError: If the key does not follow the scheme
    """
    parts = pk.split(SEPARATOR) if isinstance(pk, str) else []
    if len(parts) != 4 or parts[0] != CLINIC_TOKEN or parts[2] != PATIENT_TOKEN or not parts[1] or not parts[3]:
        raise MalformedKeyError("Malformed note partition key", details={"key": pk})
    return parts[1], parts[3]


def parse_note_sk(sk: str) -> tuple[str, str]:
    """
    Split a note sort key into ``(study_date, note_id)``.

    Raises:
        MalformedKeyError: If the key does not follow the scheme
    """
    parts = sk.split(SEPARATOR) if isinstance(sk, str) else []
    if len(parts) != 3 or parts[0] != NOTE_TOKEN or not parts[1] or not parts[2]:
        raise MalformedKeyError("Malformed note sort key", details={"key": sk})
    return parts[1], parts[2]


def note_sk_lower_bound(study_date: date | str) -> str:
    """Smallest note sort key on ``study_date``."""
    return f"{NOTE_PREFIX}{format_study_date(study_date)}"


def note_sk_upper_bound(study_date: date | str) -> str:
    """Largest note sort key on ``study_date``."""
    return f"{NOTE_PREFIX}{format_study_date(study_date)}{_UPPER_SENTINEL}"


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", file_name)


def build_attachment_storage_key(
    clinic_id: str,
    patient_id: str,
    note_id: str,
    attachment_id: str,
    file_name: str,
) -> str:
    """Blob storage key for a note attachment."""
    return (
        f"clinic/{clinic_id}/patient/{patient_id}/note/{note_id}/"
        f"{attachment_id}/{sanitize_file_name(file_name)}"
    )
