"""
Normalizador de uploads de roster.

Las distintas versiones de la app cliente envian los mismos campos con
nombres distintos (camelCase, snake_case y nombres heredados). Aqui se
resuelven una sola vez, en el ingreso, a los registros canonicos del
dominio. El resto del pipeline nunca ve el payload crudo.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from rostersync.application.dto.roster_dto import RosterUploadRequestDTO
from rostersync.domain.entities import DayEntry, DutyEntry, RosterUpload, SectorEntry
from rostersync.shared.exceptions.domain import ValidationException
from rostersync.shared.utils.date_utils import parse_date, parse_datetime


def is_present(value: Any) -> bool:
    """Un valor cuenta como presente si no es None ni string vacio (False si cuenta)."""
    return value is not None and value != ""


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return None


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    return [value]


@dataclass(frozen=True)
class FieldAlias:
    """
    Mapeo de un campo logico a su lista ordenada de nombres aceptados.

    resolve() recorre los nombres en orden y retorna el primer valor
    presente que el transform acepta; un valor no interpretable pasa al
    siguiente nombre. Si ninguno sirve retorna el default.
    """
    name: str
    keys: Tuple[str, ...]
    transform: Optional[Callable[[Any], Any]] = None
    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None

    def _default(self) -> Any:
        return self.default_factory() if self.default_factory else self.default

    def resolve(self, record: Mapping[str, Any]) -> Any:
        for key in self.keys:
            value = record.get(key)
            if not is_present(value):
                continue
            if self.transform is None:
                return value
            converted = self.transform(value)
            if converted is None:
                logger.warning(f"Valor no interpretable para '{self.name}' ({key}={value!r})")
                continue
            return converted
        return self._default()


# ============================================================================
# Alias por nivel (orden: camelCase, snake_case, heredados)
# ============================================================================

# isoDate primero: `date` suele traer el texto de pantalla ("Fri 05")
DAY_DATE = FieldAlias("date", ("isoDate", "iso_date", "date"), transform=parse_date)

DAY_FIELDS: Tuple[FieldAlias, ...] = (
    FieldAlias("day_number", ("dayNumber", "day_number"), transform=_as_int),
    FieldAlias("weekday", ("weekday", "weekDay", "week_day"), transform=_as_str),
    FieldAlias("iso_date", ("isoDate", "iso_date"), transform=_as_str),
    FieldAlias("raw_text", ("rawText", "raw_text", "raw"), transform=_as_str, default=""),
)

# `parsed` tiene prioridad sobre `duties`
DAY_DUTIES = FieldAlias("duties", ("parsed", "duties"), default_factory=list)

DUTY_FIELDS: Tuple[FieldAlias, ...] = (
    FieldAlias("duty_kind", ("dutyKind", "duty_kind", "kind"), transform=_as_str, default="unknown"),
    FieldAlias("duty_type", ("dutyType", "duty_type", "type"), transform=_as_str),
    FieldAlias("rule_id", ("ruleId", "rule_id"), transform=_as_str, default="unknown"),
    FieldAlias("check_in", ("checkIn", "check_in"), transform=_as_str),
    FieldAlias("check_in_station", ("checkInStation", "check_in_station"), transform=_as_str),
    FieldAlias("check_in_date", ("checkInDate", "check_in_date"), transform=parse_date),
    FieldAlias("check_out", ("checkOut", "check_out"), transform=_as_str),
    FieldAlias("check_out_station", ("checkOutStation", "check_out_station"), transform=_as_str),
    FieldAlias("check_out_date", ("checkOutDate", "check_out_date"), transform=parse_date),
    FieldAlias("is_instructor_duty", ("isInstructorDuty", "is_instructor_duty"), transform=_as_bool),
    FieldAlias("learning_title", ("learningTitle", "learning_title"), transform=_as_str),
    FieldAlias("notes", ("notes",), transform=_as_list, default_factory=list),
)

DUTY_SECTORS = FieldAlias("sectors", ("sectors", "legs"), default_factory=list)

SECTOR_FIELDS: Tuple[FieldAlias, ...] = (
    FieldAlias("flight_number", ("flightNumber", "flight_number", "flightNo"), transform=_as_str, default=""),
    FieldAlias(
        "dep_code",
        ("depCode", "dep_code", "depIATA", "depIata", "dep_iata", "depICAO", "depIcao", "dep_icao"),
        transform=_as_str,
        default="",
    ),
    FieldAlias(
        "arr_code",
        ("arrCode", "arr_code", "arrIATA", "arrIata", "arr_iata", "arrICAO", "arrIcao", "arr_icao"),
        transform=_as_str,
        default="",
    ),
    FieldAlias("dep_time", ("depTime", "dep_time"), transform=_as_str),
    FieldAlias("arr_time", ("arrTime", "arr_time"), transform=_as_str),
    FieldAlias("aircraft", ("aircraft", "aircraftType", "aircraft_type"), transform=_as_str),
    FieldAlias(
        "dep_time_utc",
        ("depTimeUTC", "depTimeUtc", "dep_time_utc", "depTimeDt", "dep_time_dt"),
        transform=parse_datetime,
    ),
    FieldAlias(
        "arr_time_utc",
        ("arrTimeUTC", "arrTimeUtc", "arr_time_utc", "arrTimeDt", "arr_time_dt"),
        transform=parse_datetime,
    ),
    FieldAlias(
        "training_kind",
        ("trainingKind", "training_kind", "kindTrainingDuty", "kind_training_duty"),
        transform=_as_str,
        default="none",
    ),
    FieldAlias("cockpit_crew", ("cockpitCrew", "cockpit_crew"), transform=_as_list, default_factory=list),
    FieldAlias("cabin_crew", ("cabinCrew", "cabin_crew"), transform=_as_list, default_factory=list),
    FieldAlias("dep_time_is_local", ("depTimeIsLocal", "dep_time_is_local"), transform=_as_bool, default=False),
    FieldAlias("arr_time_is_local", ("arrTimeIsLocal", "arr_time_is_local"), transform=_as_bool, default=False),
)


def resolve_fields(record: Mapping[str, Any], fields: Tuple[FieldAlias, ...]) -> Dict[str, Any]:
    """Resuelve todos los alias de un nivel a un dict con nombres canonicos."""
    return {alias.name: alias.resolve(record) for alias in fields}


class RosterNormalizer:
    """
    Convierte el request de upload en un RosterUpload canonico.

    Toda la validacion de forma ocurre aqui, antes de tocar la base:
    un error de validacion nunca deja escrituras parciales.

    Uso:
        upload = RosterNormalizer().normalize_upload(request)
    """

    def normalize_upload(self, request: RosterUploadRequestDTO) -> RosterUpload:
        """
        Valida y normaliza el upload completo.

        Raises:
            ValidationException: Campos requeridos ausentes o dias invalidos
        """
        crew_id = (request.crew_id or "").strip()
        if not crew_id:
            raise ValidationException("crew_id es requerido", field="crew_id")
        if request.period_start is None:
            raise ValidationException("period_start es requerido", field="period_start")
        if request.period_end is None:
            raise ValidationException("period_end es requerido", field="period_end")
        if request.period_start > request.period_end:
            raise ValidationException(
                "period_start no puede ser posterior a period_end", field="period_start"
            )

        raw_days, payload = self._extract_days(request)
        days = tuple(self.normalize_day(raw, index) for index, raw in enumerate(raw_days))

        logger.debug(f"Upload normalizado: crew={crew_id} v{request.version_number} dias={len(days)}")

        return RosterUpload(
            crew_id=crew_id,
            period_start=request.period_start,
            period_end=request.period_end,
            version_number=request.version_number,
            days=days,
            payload=payload,
            source_file_name=request.source_file_name,
            source_file_size=request.source_file_size,
            name=request.name,
            flight_time=request.flight_time,
            generated_at=request.generated_at,
            app_version=request.app_version,
            device_model=request.device_model,
            os_version=request.os_version,
        )

    def _extract_days(self, request: RosterUploadRequestDTO) -> Tuple[List[Any], Dict[str, Any]]:
        """
        Ubica el contenedor de dias: `days`, o `json_data.roster` / `json_data.days`.

        Returns:
            (lista de dias crudos, payload a guardar en la version)
        """
        if request.days:
            payload = dict(request.json_data) if request.json_data else {}
            payload.setdefault("days", request.days)
            return request.days, payload

        json_data = request.json_data or {}
        for key in ("roster", "days"):
            container = json_data.get(key)
            if isinstance(container, list) and container:
                return container, dict(json_data)

        raise ValidationException(
            "Se requiere una lista de dias no vacia (days, json_data.roster o json_data.days)",
            field="days",
        )

    def normalize_day(self, raw: Any, index: int = 0) -> DayEntry:
        """
        Normaliza un dia.

        Raises:
            ValidationException: Si el dia no es un objeto o no tiene fecha valida
        """
        field_name = f"days[{index}]"
        if not isinstance(raw, Mapping):
            raise ValidationException("Cada dia debe ser un objeto", field=field_name)

        day_date = DAY_DATE.resolve(raw)
        if day_date is None:
            raise ValidationException("El dia no tiene una fecha valida", field=f"{field_name}.date")

        raw_duties = DAY_DUTIES.resolve(raw)
        if not isinstance(raw_duties, list):
            raise ValidationException("duties debe ser una lista", field=f"{field_name}.duties")

        duties = []
        for duty_index, raw_duty in enumerate(raw_duties):
            if not isinstance(raw_duty, Mapping):
                raise ValidationException(
                    "Cada duty debe ser un objeto", field=f"{field_name}.duties[{duty_index}]"
                )
            duties.append(self.normalize_duty(raw_duty))

        values = resolve_fields(raw, DAY_FIELDS)
        return DayEntry(
            date=day_date,
            raw_duties=raw_duties,
            duties=tuple(duties),
            **values
        )

    def normalize_duty(self, raw: Mapping[str, Any]) -> DutyEntry:
        """Normaliza un duty y sus sectores."""
        raw_sectors = DUTY_SECTORS.resolve(raw)
        if not isinstance(raw_sectors, list):
            logger.warning(f"sectors no es una lista, se ignora: {type(raw_sectors).__name__}")
            raw_sectors = []

        sectors = tuple(self.normalize_sector(raw_sector) for raw_sector in raw_sectors)
        return DutyEntry(sectors=sectors, **resolve_fields(raw, DUTY_FIELDS))

    def normalize_sector(self, raw: Any) -> SectorEntry:
        """
        Normaliza un sector.

        Un sector que no es objeto queda con codigos vacios; el DutyWriter
        lo descarta y lo cuenta como omitido.
        """
        if not isinstance(raw, Mapping):
            return SectorEntry()
        return SectorEntry(**resolve_fields(raw, SECTOR_FIELDS))
