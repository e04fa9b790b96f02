"""ORM models exposed for metadata discovery."""
from habitcoach.db.models.daily_report import DailyReportRecord
from habitcoach.db.models.plan import PlanRecord
from habitcoach.db.models.todo_instance import TodoInstanceRecord
from habitcoach.db.models.user import User
from habitcoach.db.models.weekly_report import WeeklyReportRecord

__all__ = [
    "DailyReportRecord",
    "PlanRecord",
    "TodoInstanceRecord",
    "User",
    "WeeklyReportRecord",
]
