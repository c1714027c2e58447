"""
DTOs para sincronizacion y consulta de rosters.

El request de upload es deliberadamente laxo en los campos requeridos:
la validacion de presencia la hace el caso de uso para devolver un
VALIDATION_ERROR uniforme antes de abrir cualquier transaccion.
"""
from typing import Optional, List, Dict, Any
from datetime import date, datetime
from pydantic import BaseModel, Field


class RosterUploadRequestDTO(BaseModel):
    """
    Upload de una version completa del roster desde el cliente.

    Los dias pueden venir en `days` o dentro de `json_data` bajo
    `roster` o `days`.
    """

    crew_id: Optional[str] = Field(None, description="Identificador del tripulante")
    period_start: Optional[date] = Field(None, description="Inicio del periodo (YYYY-MM-DD)")
    period_end: Optional[date] = Field(None, description="Fin del periodo (YYYY-MM-DD)")
    version_number: int = Field(default=1, ge=1, description="Numero de version dentro del periodo")

    source_file_name: Optional[str] = Field(None, description="Nombre del archivo fuente")
    source_file_size: Optional[int] = Field(None, ge=0, description="Tamano del archivo fuente en bytes")

    days: Optional[List[Any]] = Field(None, description="Lista de dias del roster")
    json_data: Optional[Dict[str, Any]] = Field(
        None,
        description="Contenedor alternativo: {'roster': [...]} o {'days': [...]}"
    )

    name: Optional[str] = Field(None, description="Nombre del tripulante segun el roster")
    flight_time: Optional[str] = Field(None, description="Horas de vuelo del periodo")
    generated_at: Optional[datetime] = Field(None, description="Fecha de generacion del roster")

    # Metadatos del dispositivo
    app_version: Optional[str] = Field(None, description="Version de la app cliente")
    device_model: Optional[str] = Field(None, description="Modelo del dispositivo")
    os_version: Optional[str] = Field(None, alias="ios_version", description="Version del sistema operativo")

    class Config:
        populate_by_name = True


class RosterUploadResponseDTO(BaseModel):
    """Resultado de un upload confirmado."""

    message: str = "Roster sincronizado correctamente"
    period_id: int
    version_id: int
    days_written: int
    days_unchanged: int
    sectors_written: int
    sectors_skipped: int


class RosterPeriodDTO(BaseModel):
    """Periodo con agregados para el listado."""

    id: int
    crew_id: str
    period_start: date
    period_end: date
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    total_days: int = 0
    latest_version_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RosterPeriodListDTO(BaseModel):
    """Listado de periodos (ultimo por mes y tripulante)."""

    periods: List[RosterPeriodDTO]


class RosterVersionDTO(BaseModel):
    """Version de un periodo, sin el payload completo."""

    id: int
    version_number: int
    source_file_name: Optional[str] = None
    source_file_size: Optional[int] = None
    parsed_at: Optional[datetime] = None
    name: Optional[str] = None
    flight_time: Optional[str] = None
    generated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DateChangeDTO(BaseModel):
    """Fecha con mas de una version materializada."""

    date: date
    version_count: int


class RosterPeriodDetailDTO(BaseModel):
    """Detalle de un periodo: versiones y fechas con cambios."""

    period: RosterPeriodDTO
    versions: List[RosterVersionDTO]
    changes: List[DateChangeDTO]


class RosterDayDTO(BaseModel):
    """Dia materializado del roster."""

    id: int
    date: date
    day_number: Optional[int] = None
    weekday: Optional[str] = None
    iso_date: Optional[str] = None
    raw_text: str = ""
    parsed_data: Any = None
    is_active_for_date: bool
    updated_at: Optional[datetime] = None
    version_number: int
    source_file_name: Optional[str] = None
    version_parsed_at: Optional[datetime] = None
    has_changes: bool = False


class RosterDayListDTO(BaseModel):
    """Listado de dias activos."""

    days: List[RosterDayDTO]


class RosterDayHistoryDTO(BaseModel):
    """Historial de versiones de una fecha (mas reciente primero)."""

    versions: List[RosterDayDTO]


class SectorDTO(BaseModel):
    """Tramo de vuelo persistido."""

    id: int
    flight_number: str
    dep_code: str
    arr_code: str
    dep_time: Optional[str] = None
    arr_time: Optional[str] = None
    aircraft: Optional[str] = None
    dep_time_utc: Optional[datetime] = None
    arr_time_utc: Optional[datetime] = None
    training_kind: str = "none"
    cockpit_crew: List[Any] = Field(default_factory=list)
    cabin_crew: List[Any] = Field(default_factory=list)
    dep_time_is_local: bool = False
    arr_time_is_local: bool = False

    class Config:
        from_attributes = True


class DutyAssignmentDTO(BaseModel):
    """Duty persistido con sus tramos."""

    id: int
    sequence_order: int
    duty_kind: str
    duty_type: Optional[str] = None
    rule_id: str
    check_in: Optional[str] = None
    check_in_station: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out: Optional[str] = None
    check_out_station: Optional[str] = None
    check_out_date: Optional[date] = None
    is_instructor_duty: Optional[bool] = None
    learning_title: Optional[str] = None
    notes: List[Any] = Field(default_factory=list)
    sectors: List[SectorDTO] = Field(default_factory=list)

    class Config:
        from_attributes = True


class DutyListDTO(BaseModel):
    """Duties de un dia activo."""

    duties: List[DutyAssignmentDTO]


class SyncRecordDTO(BaseModel):
    """Entrada del historial de sincronizaciones."""

    id: int
    period_id: Optional[int] = None
    direction: str
    days_synced: int
    sectors_synced: int
    status: str
    created_at: Optional[datetime] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None


class SyncHistoryDTO(BaseModel):
    """Historial de sincronizaciones del usuario."""

    sync_history: List[SyncRecordDTO]


class DeletedPeriodDTO(BaseModel):
    """Resultado del borrado de un periodo."""

    message: str = "Periodo eliminado correctamente"
    deleted: Dict[str, Any]
