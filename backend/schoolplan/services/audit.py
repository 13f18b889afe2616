from __future__ import annotations

from sqlalchemy.orm import Session

from schoolplan.models.activity_log import ActivityLog


def log_activity(
    db: Session,
    *,
    institution_id: str,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
    actor: str | None = None,
) -> None:
    record = ActivityLog(
        institution_id=institution_id,
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
