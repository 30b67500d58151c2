"""Identity and service dependencies for clinical routes."""

from typing import Optional

from fastapi import Depends, Header

from shared.config import Settings
from shared.dependencies import get_app_settings, get_store
from shared.exceptions import UnauthorizedError
from shared.infrastructure.kvstore import IKeyValueStore
from shared.infrastructure.observability import bind_context

from clinical.application.services import ClinicsService, NotesService, PatientsService
from clinical.domain.value_objects.auth_context import AuthContext
from clinical.domain.value_objects.scope import resolve_scopes
from clinical.infrastructure.repositories import KVClinicRepository, KVNoteRepository, KVPatientRepository


async def get_auth_context(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_clinic_id: Optional[str] = Header(None),
    x_user_scopes: Optional[str] = Header(None),
    x_user_groups: Optional[str] = Header(None),
) -> AuthContext:
    """
    Caller identity from headers written by the upstream authorizer.

    ``X-User-Scopes`` is space separated, ``X-User-Groups`` comma separated.

    Raises:
        UnauthorizedError: If the user or clinic header is missing
    """
    if not x_user_id or not x_clinic_id:
        raise UnauthorizedError("Missing caller identity")
    bind_context(user_id=x_user_id, clinic_id=x_clinic_id)
    scopes = resolve_scopes((x_user_groups or "").split(","), (x_user_scopes or "").split())
    return AuthContext(
        user_id=x_user_id,
        display_name=x_user_name or x_user_id,
        clinic_id=x_clinic_id,
        scopes=scopes,
    )


def get_notes_service(
    store: IKeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> NotesService:
    return NotesService(
        KVNoteRepository(store, settings.cursor_secret),
        KVPatientRepository(store),
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_patients_service(store: IKeyValueStore = Depends(get_store)) -> PatientsService:
    return PatientsService(KVPatientRepository(store))


def get_clinics_service(store: IKeyValueStore = Depends(get_store)) -> ClinicsService:
    return ClinicsService(KVClinicRepository(store))
