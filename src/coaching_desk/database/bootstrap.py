from __future__ import annotations

import logging

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

logger = logging.getLogger(__name__)

# collection -> [(keys, unique)]
_INDEXES = {
    "users": [
        ([("email", ASCENDING)], True),
        ([("managementId", ASCENDING)], False),
        ([("emailDomain", ASCENDING)], False),
    ],
    "management": [
        ([("managementId", ASCENDING)], True),
        ([("emailDomain", ASCENDING)], True),
        ([("adminId", ASCENDING)], False),
    ],
    "coaches": [
        ([("email", ASCENDING), ("managementId", ASCENDING)], True),
        ([("coachId", ASCENDING), ("managementId", ASCENDING)], True),
        ([("managementId", ASCENDING)], False),
    ],
    "classes": [
        ([("classId", ASCENDING), ("managementId", ASCENDING)], True),
        ([("managementId", ASCENDING)], False),
        ([("coachId", ASCENDING)], False),
    ],
    "students": [
        ([("managementId", ASCENDING), ("classId", ASCENDING)], False),
    ],
    "attendance": [
        ([("classId", ASCENDING), ("date", ASCENDING), ("managementId", ASCENDING)], True),
        ([("managementId", ASCENDING), ("date", DESCENDING)], False),
    ],
    "tests": [
        ([("testId", ASCENDING), ("managementId", ASCENDING)], True),
        ([("managementId", ASCENDING), ("classId", ASCENDING), ("date", DESCENDING)], False),
    ],
    "marks": [
        ([("testId", ASCENDING), ("managementId", ASCENDING)], True),
        ([("managementId", ASCENDING), ("classId", ASCENDING)], False),
    ],
}


def ensure_indexes(db: Database) -> int:
    """Create the indexes the repositories rely on. Idempotent; returns how many were ensured."""
    count = 0
    for collection, specs in _INDEXES.items():
        for keys, unique in specs:
            db[collection].create_index(keys, unique=unique)
            count += 1
    logger.info("Ensured %d indexes on database %s", count, db.name)
    return count
