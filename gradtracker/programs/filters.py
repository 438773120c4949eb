"""
Turns query-string criteria into SQL clauses over ``Program``.

The owner clause is always first, so a filter can only ever narrow the
caller's own programs. Text fields match case-insensitively anywhere in the
value, the deadline matches one exact ISO date, and rows whose column is NULL
never match a non-empty criterion. Blank values and unknown keys are ignored;
a deadline that is not ``YYYY-MM-DD`` is rejected.
"""

import re
from datetime import date
from typing import Mapping

from sqlalchemy import func

from gradtracker.errors import ValidationError
from gradtracker.models.program import Program

TEXT_FIELDS = {
    "universityName": Program.university_name,
    "fieldOfStudy": Program.field_of_study,
    "focusArea": Program.focus_area,
    "status": Program.status,
    "portal": Program.portal,
    "website": Program.website,
    "tuition": Program.tuition,
    "requirements": Program.requirements,
}
# snake_case spellings of the same keys
TEXT_FIELDS.update({col.key: col for col in list(TEXT_FIELDS.values())})

DEADLINE_KEYS = ("deadline",)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_deadline(value: str) -> date:
    value = value.strip()
    if not _ISO_DATE.match(value):
        raise ValidationError(f"deadline must be an ISO date (YYYY-MM-DD): {value}")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"deadline is not a valid date: {value}")


def build_program_filter(user_id: int, criteria: Mapping[str, str] | None) -> list:
    clauses = [Program.user_id == user_id]
    for key, raw in (criteria or {}).items():
        if raw is None or not str(raw).strip():
            continue
        value = str(raw).strip()
        if key in DEADLINE_KEYS:
            clauses.append(Program.deadline == parse_deadline(value))
            continue
        column = TEXT_FIELDS.get(key)
        if column is None:
            continue
        clauses.append(func.lower(column).contains(value.lower(), autoescape=True))
    return clauses
