from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schoolplan.api.deps import get_actor, get_db, get_institution_id
from schoolplan.schemas.schedule import ConflictReport, DisplayEntry, ScheduleEntryCreate, ScheduleEntryOut
from schoolplan.services.projection import CatalogSnapshot, project_entry
from schoolplan.services.scheduling import ScheduleService

router = APIRouter()


def _snapshot(service: ScheduleService, institution_id: str) -> CatalogSnapshot:
    return CatalogSnapshot.load(
        institution_id,
        classes=service.classes,
        subjects=service.subjects,
        teachers=service.teachers,
        rooms=service.rooms,
    )


@router.get("/entries", response_model=list[ScheduleEntryOut])
def list_entries(
    day: int | None = Query(default=None, ge=0, le=6),
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> list[ScheduleEntryOut]:
    return ScheduleService(db).list_entries(institution_id, day)


@router.post("/entries", response_model=ScheduleEntryOut, status_code=status.HTTP_201_CREATED)
def propose_entry(
    payload: ScheduleEntryCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ScheduleEntryOut:
    return ScheduleService(db).propose_entry(institution_id, payload, actor=actor)


@router.put("/entries/{entry_id}", response_model=ScheduleEntryOut)
def reschedule_entry(
    entry_id: str,
    payload: ScheduleEntryCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> ScheduleEntryOut:
    return ScheduleService(db).reschedule_entry(institution_id, entry_id, payload, actor=actor)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_entry(
    entry_id: str,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> None:
    ScheduleService(db).remove_entry(institution_id, entry_id, actor=actor)


@router.get("/entries/{entry_id}/display", response_model=DisplayEntry)
def display_entry(
    entry_id: str,
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> DisplayEntry:
    service = ScheduleService(db)
    entry = service.get_entry(institution_id, entry_id)
    return project_entry(entry, _snapshot(service, institution_id))


@router.get("/display", response_model=list[DisplayEntry])
def display_schedule(
    day: int | None = Query(default=None, ge=0, le=6),
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> list[DisplayEntry]:
    service = ScheduleService(db)
    catalogs = _snapshot(service, institution_id)
    return [project_entry(entry, catalogs) for entry in service.list_entries(institution_id, day)]


@router.get("/conflicts", response_model=ConflictReport)
def audit_conflicts(
    day: int | None = Query(default=None, ge=0, le=6),
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> ConflictReport:
    return ScheduleService(db).audit_conflicts(institution_id, day)
