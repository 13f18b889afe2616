"""Seed a small French school (maternelle to terminale) for manual exploration.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from schoolplan.db.bootstrap import ensure_schema
from schoolplan.db.session import SessionLocal
from schoolplan.models.room import Room, RoomKind, RoomStatus
from schoolplan.models.school_class import SchoolClass, SchoolLevel
from schoolplan.models.subject import Subject
from schoolplan.models.teacher import Teacher
from schoolplan.schemas.assignment import HomeroomAssignmentCreate, SubjectAssignmentCreate
from schoolplan.schemas.schedule import ScheduleEntryCreate
from schoolplan.services.assignment_resolver import AssignmentResolver
from schoolplan.services.scheduling import ScheduleService

logger = logging.getLogger("seed_demo_school")

INSTITUTION_ID = os.getenv("SEED_INSTITUTION_ID", "default").strip() or "default"
ACTOR = "seed_demo_school"

CLASSES = [
    ("PS", "Maternelle - petite section"),
    ("GS", "Maternelle - grande section"),
    ("CP1", "Primaire CP"),
    ("CM2", "Primaire CM2"),
    ("6e A", "6ème"),
    ("6e B", "6ème"),
    ("3e A", "3ème"),
    ("2nde A", "2nde"),
    ("Tle C", "Terminale"),
]

ROOMS = [
    ("Salle 1", RoomKind.classroom, 25, RoomStatus.available),
    ("Salle 2", RoomKind.classroom, 25, RoomStatus.available),
    ("Salle 3", RoomKind.classroom, 30, RoomStatus.available),
    ("Salle 4", RoomKind.classroom, 40, RoomStatus.available),
    ("Salle 5", RoomKind.classroom, 40, RoomStatus.available),
    ("Labo SVT", RoomKind.lab, 30, RoomStatus.available),
    ("Salle info", RoomKind.it, 20, RoomStatus.maintenance),
]

SUBJECTS = [
    ("Éveil", "EVL", SchoolLevel.early_childhood, 1.0),
    ("Lecture", "LEC", SchoolLevel.primary, 2.0),
    ("Calcul", "CAL", SchoolLevel.primary, 2.0),
    ("Mathématiques", "MATH6", SchoolLevel.lower_secondary, 4.0),
    ("Français", "FR6", SchoolLevel.lower_secondary, 4.0),
    ("Anglais", "ANG6", SchoolLevel.lower_secondary, 2.0),
    ("Mathématiques", "MATHL", SchoolLevel.upper_secondary, 5.0),
    ("Philosophie", "PHILO", SchoolLevel.upper_secondary, 3.0),
    ("SVT", "SVTL", SchoolLevel.upper_secondary, 3.0),
]

TEACHERS = [
    ("Mme Diallo", None, 20),
    ("M. Ndiaye", None, 25),
    ("Mme Sow", None, 25),
    ("M. Fall", "MATH6", 30),
    ("Mme Ba", "FR6", 30),
    ("M. Camara", "PHILO", 30),
]


def _create_catalogs(db: Session) -> tuple[dict, dict, dict, dict]:
    classes = {}
    for name, label in CLASSES:
        classes[name] = SchoolClass(institution_id=INSTITUTION_ID, name=name, level_label=label)
    rooms = {}
    for name, kind, capacity, status in ROOMS:
        rooms[name] = Room(institution_id=INSTITUTION_ID, name=name, kind=kind, capacity=capacity, status=status)
    subjects = {}
    for name, code, level, coefficient in SUBJECTS:
        subjects[code] = Subject(
            institution_id=INSTITUTION_ID, name=name, code=code, level=level, coefficient=coefficient
        )
    db.add_all([*classes.values(), *rooms.values(), *subjects.values()])
    db.flush()

    teachers = {}
    for name, specialization, max_hours in TEACHERS:
        teachers[name] = Teacher(
            institution_id=INSTITUTION_ID,
            name=name,
            specialization_subject_id=subjects[specialization].id if specialization else None,
            max_weekly_hours=max_hours,
        )
    db.add_all(teachers.values())
    db.commit()
    return classes, rooms, subjects, teachers


def seed(db: Session) -> dict[str, int]:
    existing = db.execute(
        select(func.count()).select_from(SchoolClass).where(SchoolClass.institution_id == INSTITUTION_ID)
    ).scalar_one()
    if existing:
        logger.info("Institution %s already has %d class(es); nothing to seed", INSTITUTION_ID, existing)
        return {"classes": 0, "assignments": 0, "entries": 0}

    classes, rooms, subjects, teachers = _create_catalogs(db)

    resolver = AssignmentResolver(db)
    assignments = 0
    for teacher, class_name, hours in (("Mme Diallo", "PS", 20), ("M. Ndiaye", "CP1", 24), ("Mme Sow", "CM2", 24)):
        resolver.assign_homeroom(
            INSTITUTION_ID,
            HomeroomAssignmentCreate(teacher_id=teachers[teacher].id, class_id=classes[class_name].id, weekly_hours=hours),
            actor=ACTOR,
        )
        assignments += 1
    for teacher, code, class_names, hours in (
        ("M. Fall", "MATH6", ["6e A", "6e B", "3e A"], 4),
        ("Mme Ba", "FR6", ["6e A", "6e B"], 5),
        ("M. Camara", "PHILO", ["Tle C"], 4),
    ):
        created = resolver.assign_subject_across_classes(
            INSTITUTION_ID,
            SubjectAssignmentCreate(
                teacher_id=teachers[teacher].id,
                subject_id=subjects[code].id,
                class_ids=[classes[name].id for name in class_names],
                weekly_hours_each=hours,
            ),
            actor=ACTOR,
        )
        assignments += len(created)

    schedule = ScheduleService(db)
    bookings = [
        ("PS", "EVL", "Mme Diallo", "Salle 1", 0, "08:00", "10:00"),
        ("CP1", "LEC", "M. Ndiaye", "Salle 2", 0, "08:00", "09:30"),
        ("CP1", "CAL", "M. Ndiaye", "Salle 2", 0, "10:00", "11:00"),
        ("6e A", "MATH6", "M. Fall", "Salle 3", 0, "08:00", "10:00"),
        ("6e B", "MATH6", "M. Fall", "Salle 3", 0, "10:00", "12:00"),
        ("6e A", "FR6", "Mme Ba", "Salle 4", 1, "08:00", "09:00"),
        ("Tle C", "PHILO", "M. Camara", "Salle 5", 1, "14:00", "16:00"),
    ]
    for class_name, code, teacher, room, day, start, end in bookings:
        schedule.propose_entry(
            INSTITUTION_ID,
            ScheduleEntryCreate(
                class_id=classes[class_name].id,
                subject_id=subjects[code].id,
                teacher_id=teachers[teacher].id,
                room_id=rooms[room].id,
                day_of_week=day,
                start_time=start,
                end_time=end,
            ),
            actor=ACTOR,
        )

    summary = {"classes": len(classes), "assignments": assignments, "entries": len(bookings)}
    logger.info("Seeded institution %s: %s", INSTITUTION_ID, summary)
    return summary


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    ensure_schema()
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
