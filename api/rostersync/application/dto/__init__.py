"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .roster_dto import (
    RosterUploadRequestDTO,
    RosterUploadResponseDTO,
    RosterPeriodDTO,
    RosterPeriodListDTO,
    RosterVersionDTO,
    DateChangeDTO,
    RosterPeriodDetailDTO,
    RosterDayDTO,
    RosterDayListDTO,
    RosterDayHistoryDTO,
    SectorDTO,
    DutyAssignmentDTO,
    DutyListDTO,
    SyncRecordDTO,
    SyncHistoryDTO,
    DeletedPeriodDTO,
)

__all__ = [
    "RosterUploadRequestDTO",
    "RosterUploadResponseDTO",
    "RosterPeriodDTO",
    "RosterPeriodListDTO",
    "RosterVersionDTO",
    "DateChangeDTO",
    "RosterPeriodDetailDTO",
    "RosterDayDTO",
    "RosterDayListDTO",
    "RosterDayHistoryDTO",
    "SectorDTO",
    "DutyAssignmentDTO",
    "DutyListDTO",
    "SyncRecordDTO",
    "SyncHistoryDTO",
    "DeletedPeriodDTO",
]
