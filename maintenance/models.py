"""
maintenance/models.py -- Domain dataclasses for complexes and requisitions.

These are pure data containers with zero logic. Persistence lives in
maintenance/store.py; who may create or see what lives in auth/policy.py.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RequisitionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


@dataclass
class Complex:
    """A residential grouping that users and requisitions belong to."""

    name: str
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class Requisition:
    """A maintenance ticket filed by a user.

    complex_id is copied from the creator's user record when the ticket is
    filed, never taken from the request. status is always PENDING on insert.

    id is None before the record is written to the database.
    """

    user_id: int
    complex_id: int
    title: str
    content: str
    location: str
    priority: str  # free text, e.g. "Alta"
    img_url: Optional[str] = None
    status: RequisitionStatus = RequisitionStatus.PENDING
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
