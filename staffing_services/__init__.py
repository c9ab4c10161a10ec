"""Application services: the workforce facade."""

from staffing_services.workforce import TimesheetView, WorkforceService

__all__ = ["TimesheetView", "WorkforceService"]
