import os

# The application engine is created at import time; keep it off PostgreSQL in tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from schoolplan.api.deps import get_db
from schoolplan.db.base import Base
from schoolplan.main import app
from schoolplan.models.room import Room, RoomStatus
from schoolplan.models.school_class import SchoolClass, SchoolLevel
from schoolplan.models.subject import Subject
from schoolplan.models.teacher import Teacher

INSTITUTION = "default"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def school(db_session):
    """A small school: two primary classes, three collège classes, a lycée class and a shared room pool."""
    classes = {
        "CP1": SchoolClass(institution_id=INSTITUTION, name="CP1", level_label="CP1"),
        "CE2": SchoolClass(institution_id=INSTITUTION, name="CE2", level_label="Primaire CE2"),
        "C6A": SchoolClass(institution_id=INSTITUTION, name="6e A", level_label="6ème"),
        "C6B": SchoolClass(institution_id=INSTITUTION, name="6e B", level_label="6ème"),
        "C3A": SchoolClass(institution_id=INSTITUTION, name="3e A", level_label="3ème"),
        "TLE": SchoolClass(institution_id=INSTITUTION, name="Tle C", level_label="Terminale"),
    }
    rooms = {
        "R1": Room(institution_id=INSTITUTION, name="Salle 1", status=RoomStatus.available),
        "R2": Room(institution_id=INSTITUTION, name="Salle 2", status=RoomStatus.available),
        "R3": Room(institution_id=INSTITUTION, name="Salle 3", status=RoomStatus.maintenance),
        "R4": Room(institution_id=INSTITUTION, name="Salle 4", status=RoomStatus.unavailable),
    }
    subjects = {
        "MATH6": Subject(
            institution_id=INSTITUTION, name="Mathématiques", code="MATH6", level=SchoolLevel.lower_secondary
        ),
        "FR6": Subject(institution_id=INSTITUTION, name="Français", code="FR6", level=SchoolLevel.lower_secondary),
        "PHILO": Subject(institution_id=INSTITUTION, name="Philosophie", code="PHILO", level=SchoolLevel.upper_secondary),
        "LEC": Subject(institution_id=INSTITUTION, name="Lecture", code="LEC", level=SchoolLevel.primary),
        "CAL": Subject(institution_id=INSTITUTION, name="Calcul", code="CAL", level=SchoolLevel.primary),
    }
    db_session.add_all([*classes.values(), *rooms.values(), *subjects.values()])
    db_session.flush()
    teachers = {
        "T1": Teacher(institution_id=INSTITUTION, name="Mme Diallo", max_weekly_hours=25),
        "T2": Teacher(
            institution_id=INSTITUTION,
            name="M. Fall",
            specialization_subject_id=subjects["MATH6"].id,
            max_weekly_hours=30,
        ),
        "T3": Teacher(institution_id=INSTITUTION, name="Mme Ba", max_weekly_hours=30),
    }
    db_session.add_all(teachers.values())
    db_session.commit()
    return {
        "classes": {key: item.id for key, item in classes.items()},
        "rooms": {key: item.id for key, item in rooms.items()},
        "subjects": {key: item.id for key, item in subjects.items()},
        "teachers": {key: item.id for key, item in teachers.items()},
    }
