from fastapi import APIRouter, Query

from schoolplan.schemas.school_class import LevelClassificationOut
from schoolplan.services.level_classifier import classify_level, get_keyword_table
from schoolplan.services.room_policy import resolve_room_policy

router = APIRouter()


@router.get("/classify", response_model=LevelClassificationOut)
def classify(label: str = Query(default="", max_length=100)) -> LevelClassificationOut:
    table = get_keyword_table()
    level = classify_level(label, table=table)
    return LevelClassificationOut(
        label=label,
        level=level,
        room_policy=resolve_room_policy(level),
        keyword_table_version=table.version,
    )
