from .composer import ScheduleComposer, ScheduleDiagnostics, ScheduleRow, ScheduleTarget

__all__ = ["ScheduleComposer", "ScheduleDiagnostics", "ScheduleRow", "ScheduleTarget"]
