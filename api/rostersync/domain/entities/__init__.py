"""
Entidades del dominio.
"""
from rostersync.domain.entities.roster import (
    SectorEntry,
    DutyEntry,
    DayEntry,
    RosterUpload,
    ActiveDaySnapshot,
    DayOutcome,
    UploadResult
)

__all__ = [
    "SectorEntry",
    "DutyEntry",
    "DayEntry",
    "RosterUpload",
    "ActiveDaySnapshot",
    "DayOutcome",
    "UploadResult"
]
