from __future__ import annotations

from collections.abc import Iterable

from schoolplan.core.config import get_settings
from schoolplan.models.room import RoomPolicy, RoomStatus
from schoolplan.models.school_class import HOMEROOM_LEVELS, SchoolLevel
from schoolplan.schemas.room import RoomOut
from schoolplan.schemas.school_class import SchoolClassOut
from schoolplan.services.level_classifier import classify_level


def resolve_room_policy(level: SchoolLevel, secondary_policy: RoomPolicy | None = None) -> RoomPolicy:
    if level in HOMEROOM_LEVELS:
        return RoomPolicy.fixed
    return secondary_policy or get_settings().secondary_room_policy


def candidate_rooms(
    school_class: SchoolClassOut,
    all_rooms: Iterable[RoomOut],
    bound_room_id: str | None = None,
    *,
    policy: RoomPolicy | None = None,
) -> list[RoomOut]:
    """Narrow the room pool to the rooms a class may be booked into.

    ``bound_room_id`` is the room the class was first booked into, if any. Only the
    fixed policy honours it: the class keeps that room unless it became unavailable.
    """
    rooms = list(all_rooms)
    if policy is None:
        policy = resolve_room_policy(classify_level(school_class.level_label))

    if policy == RoomPolicy.fixed and bound_room_id is not None:
        for room in rooms:
            if room.id == bound_room_id:
                return [] if room.status == RoomStatus.unavailable else [room]
        # The bound room left the catalog; let the operator pick a new permanent room.

    return [room for room in rooms if room.status == RoomStatus.available]
