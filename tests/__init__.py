# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from kickoff.models.category import Category  # noqa: F401
from kickoff.models.group import Group  # noqa: F401
from kickoff.models.match import Match  # noqa: F401
from kickoff.models.schedule_config import ScheduleConfig  # noqa: F401
from kickoff.models.team import Team  # noqa: F401
from kickoff.models.tournament import Tournament  # noqa: F401
