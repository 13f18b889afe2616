from schoolplan.models.activity_log import ActivityLog  # noqa: F401
from schoolplan.models.assignment import AssignmentMode, TeacherAssignment  # noqa: F401
from schoolplan.models.room import Room, RoomKind, RoomPolicy, RoomStatus  # noqa: F401
from schoolplan.models.schedule_entry import ScheduleDayVersion, ScheduleEntry  # noqa: F401
from schoolplan.models.school_class import SchoolClass, SchoolLevel  # noqa: F401
from schoolplan.models.subject import Subject  # noqa: F401
from schoolplan.models.teacher import Teacher  # noqa: F401
