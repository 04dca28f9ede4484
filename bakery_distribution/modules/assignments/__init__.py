from .engine import AssignmentEngine, DailyAssignmentReport

__all__ = ["AssignmentEngine", "DailyAssignmentReport"]
