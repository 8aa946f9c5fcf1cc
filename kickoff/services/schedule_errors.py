"""
Schedule generation errors and warnings.

InputError and ConflictError abort generation (nothing is persisted).
ResolutionWarning is non-fatal and travels with the generated schedule.
"""

from typing import Iterable, List, Optional


class ScheduleError(Exception):
    """Base exception for schedule generation and editing errors"""

    def __init__(self, issues: Iterable[str]):
        self.issues: List[str] = list(issues)
        super().__init__("; ".join(self.issues))


class InputError(ScheduleError):
    """Rosters or configuration cannot produce a schedule"""
    pass


class ConflictError(ScheduleError):
    """A team is booked into more than one match at the same time"""
    pass


class ResolutionWarning:
    """Non-fatal issue recorded while assembling a schedule"""

    def __init__(self, code: str, message: str, match_number: Optional[int] = None):
        self.code = code
        self.message = message
        self.match_number = match_number

    def to_dict(self):
        return {"code": self.code, "message": self.message, "match_number": self.match_number}
