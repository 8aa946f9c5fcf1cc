from kickoff.models.category import Category
from kickoff.models.group import Group
from kickoff.models.match import Match
from kickoff.models.schedule_config import ScheduleConfig
from kickoff.models.team import Team
from kickoff.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Category",
    "Group",
    "Team",
    "ScheduleConfig",
    "Match",
]
