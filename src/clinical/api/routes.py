"""Clinical notes API routes."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from shared.api.response_models import ERROR_RESPONSES, ErrorResponse
from shared.infrastructure.observability import get_logger

from clinical.api.dependencies import (
    get_auth_context,
    get_clinics_service,
    get_notes_service,
    get_patients_service,
)
from clinical.api.schemas import (
    ClinicResponse,
    CreateNoteRequest,
    DataResponse,
    NoteListResponse,
    NoteResponse,
    PatientResponse,
    UpdateNoteRequest,
)
from clinical.application.services import ClinicsService, NotesService, PatientsService
from clinical.domain.value_objects.auth_context import AuthContext
from clinical.domain.value_objects.note_values import ListNotesOptions
from throttling.api.dependencies import rate_limit

logger = get_logger(__name__)

router = APIRouter(tags=["clinical"], responses=ERROR_RESPONSES)


@router.post(
    "/patients/{patient_id}/notes",
    response_model=DataResponse[NoteResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("create_note", key="clinic"))],
    summary="Create a note",
)
async def create_note(
    body: CreateNoteRequest,
    patient_id: str = Path(..., min_length=1, max_length=100),
    auth: AuthContext = Depends(get_auth_context),
    service: NotesService = Depends(get_notes_service),
):
    note = await service.create_note(auth, patient_id, body.to_draft())
    return DataResponse(data=NoteResponse.from_domain(note))


@router.get(
    "/patients/{patient_id}/notes",
    response_model=DataResponse[NoteListResponse],
    dependencies=[Depends(rate_limit("read"))],
    summary="List notes, newest study date first",
)
async def list_notes(
    patient_id: str = Path(..., min_length=1, max_length=100),
    cursor: Optional[str] = Query(None, min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    study_date_from: Optional[date] = Query(None, alias="studyDateFrom"),
    study_date_to: Optional[date] = Query(None, alias="studyDateTo"),
    tag: Optional[str] = Query(None, min_length=1, max_length=50),
    q: Optional[str] = Query(None, min_length=1, max_length=200),
    auth: AuthContext = Depends(get_auth_context),
    service: NotesService = Depends(get_notes_service),
):
    logger.info(
        "Listing notes",
        patient_id=patient_id,
        limit=limit,
        cursor="[present]" if cursor else None,
        tag=tag,
        q="[present]" if q else None,
    )
    page = await service.list_notes(
        auth,
        patient_id,
        ListNotesOptions(
            cursor=cursor,
            limit=limit or 0,
            study_date_from=study_date_from,
            study_date_to=study_date_to,
            tag=tag,
            search=q,
        ),
    )
    return DataResponse(
        data=NoteListResponse(
            items=[NoteResponse.from_domain(n) for n in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )
    )


@router.get(
    "/patients/{patient_id}/notes/{note_id}",
    response_model=DataResponse[NoteResponse],
    dependencies=[Depends(rate_limit("read"))],
    responses={404: {"model": ErrorResponse, "description": "Note not found"}},
)
async def get_note(
    patient_id: str = Path(..., min_length=1, max_length=100),
    note_id: str = Path(..., min_length=1, max_length=100),
    auth: AuthContext = Depends(get_auth_context),
    service: NotesService = Depends(get_notes_service),
):
    note = await service.get_note(auth, patient_id, note_id)
    return DataResponse(data=NoteResponse.from_domain(note))


@router.patch(
    "/patients/{patient_id}/notes/{note_id}",
    response_model=DataResponse[NoteResponse],
    dependencies=[Depends(rate_limit("default"))],
    responses={
        404: {"model": ErrorResponse, "description": "Note not found"},
        409: {"model": ErrorResponse, "description": "Version conflict"},
    },
)
async def update_note(
    body: UpdateNoteRequest,
    patient_id: str = Path(..., min_length=1, max_length=100),
    note_id: str = Path(..., min_length=1, max_length=100),
    auth: AuthContext = Depends(get_auth_context),
    service: NotesService = Depends(get_notes_service),
):
    note = await service.update_note(auth, patient_id, note_id, body.to_patch())
    return DataResponse(data=NoteResponse.from_domain(note))


@router.delete(
    "/patients/{patient_id}/notes/{note_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(rate_limit("default"))],
    responses={404: {"model": ErrorResponse, "description": "Note not found"}},
)
async def delete_note(
    patient_id: str = Path(..., min_length=1, max_length=100),
    note_id: str = Path(..., min_length=1, max_length=100),
    auth: AuthContext = Depends(get_auth_context),
    service: NotesService = Depends(get_notes_service),
):
    await service.delete_note(auth, patient_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/patients",
    response_model=DataResponse[List[PatientResponse]],
    dependencies=[Depends(rate_limit("read"))],
)
async def list_patients(
    auth: AuthContext = Depends(get_auth_context),
    service: PatientsService = Depends(get_patients_service),
):
    patients = await service.list_patients(auth)
    return DataResponse(data=[PatientResponse.from_domain(p) for p in patients])


@router.get(
    "/clinics/{clinic_id}",
    response_model=DataResponse[ClinicResponse],
    dependencies=[Depends(rate_limit("read"))],
    responses={404: {"model": ErrorResponse, "description": "Clinic not found"}},
)
async def get_clinic(
    clinic_id: str = Path(..., min_length=1, max_length=100),
    auth: AuthContext = Depends(get_auth_context),
    service: ClinicsService = Depends(get_clinics_service),
):
    clinic = await service.get_clinic(auth, clinic_id)
    return DataResponse(data=ClinicResponse.from_domain(clinic))
