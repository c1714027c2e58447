"""
Entidades de dominio del roster.

Registros canonicos producidos al ingerir un upload: los alias de campos
ya fueron resueltos, por lo que el resto del pipeline trabaja solo con
estos tipos y nunca con el payload crudo del cliente.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class SectorEntry:
    """
    Tramo de vuelo tal como llega del cliente.

    dep_code / arr_code se guardan sin validar; el DutyWriter decide
    si el tramo se persiste.
    """
    flight_number: str = ""
    dep_code: str = ""
    arr_code: str = ""
    dep_time: Optional[str] = None
    arr_time: Optional[str] = None
    aircraft: Optional[str] = None
    dep_time_utc: Optional[datetime] = None
    arr_time_utc: Optional[datetime] = None
    training_kind: str = "none"
    cockpit_crew: List[Any] = field(default_factory=list)
    cabin_crew: List[Any] = field(default_factory=list)
    dep_time_is_local: bool = False
    arr_time_is_local: bool = False


@dataclass(frozen=True)
class DutyEntry:
    """Duty canonico con sus tramos en orden de entrada."""
    duty_kind: str = "unknown"
    duty_type: Optional[str] = None
    rule_id: str = "unknown"
    check_in: Optional[str] = None
    check_in_station: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out: Optional[str] = None
    check_out_station: Optional[str] = None
    check_out_date: Optional[date] = None
    is_instructor_duty: Optional[bool] = None
    learning_title: Optional[str] = None
    notes: List[Any] = field(default_factory=list)
    sectors: Tuple[SectorEntry, ...] = ()


@dataclass(frozen=True)
class DayEntry:
    """
    Un dia del upload.

    raw_duties conserva la estructura original de duties tal como llego:
    es lo que se guarda en parsed_data. La deteccion de cambios usa duties.
    """
    date: date
    day_number: Optional[int] = None
    weekday: Optional[str] = None
    iso_date: Optional[str] = None
    raw_text: str = ""
    raw_duties: List[Dict[str, Any]] = field(default_factory=list)
    duties: Tuple[DutyEntry, ...] = ()


@dataclass(frozen=True)
class RosterUpload:
    """Upload completo de una version, ya validado y normalizado."""
    crew_id: str
    period_start: date
    period_end: date
    version_number: int
    days: Tuple[DayEntry, ...]
    payload: Dict[str, Any]
    source_file_name: Optional[str] = None
    source_file_size: Optional[int] = None
    name: Optional[str] = None
    flight_time: Optional[str] = None
    generated_at: Optional[datetime] = None
    app_version: Optional[str] = None
    device_model: Optional[str] = None
    os_version: Optional[str] = None


@dataclass(frozen=True)
class ActiveDaySnapshot:
    """Lo minimo del dia activo necesario para detectar cambios."""
    id: int
    source_version_id: int
    raw_text: str
    content_digest: str


@dataclass
class DayOutcome:
    """Resultado de materializar un dia."""
    date: date
    written: bool
    day_id: Optional[int] = None
    sectors_written: int = 0
    sectors_skipped: int = 0


@dataclass
class UploadResult:
    """
    Contadores agregados de un upload confirmado.

    Los contadores reflejan lo que queda guardado: si una fecha se repite
    en el upload, cuenta una sola vez y gana la ultima entrada que la
    reescribio (sus duties reemplazan a los de la anterior).
    """
    period_id: int
    version_id: int
    days_written: int = 0
    days_unchanged: int = 0
    sectors_written: int = 0
    sectors_skipped: int = 0
    _by_date: Dict[date, DayOutcome] = field(default_factory=dict, repr=False, compare=False)

    def add(self, outcome: DayOutcome) -> None:
        """Acumula el resultado de un dia."""
        previous = self._by_date.get(outcome.date)
        if previous is None:
            self._by_date[outcome.date] = outcome
            if outcome.written:
                self.days_written += 1
            else:
                self.days_unchanged += 1
            self.sectors_written += outcome.sectors_written
            self.sectors_skipped += outcome.sectors_skipped
            return

        if not outcome.written:
            return

        if previous.written:
            self.sectors_written -= previous.sectors_written
            self.sectors_skipped -= previous.sectors_skipped
        else:
            self.days_unchanged -= 1
            self.days_written += 1
        self.sectors_written += outcome.sectors_written
        self.sectors_skipped += outcome.sectors_skipped
        self._by_date[outcome.date] = outcome
