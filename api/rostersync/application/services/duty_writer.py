"""
Escritura de duties y sectores de un dia materializado.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from loguru import logger

from rostersync.domain.entities import DutyEntry
from rostersync.infrastructure.repositories.duty_repository import DutyRepository


MIN_STATION_CODE_LENGTH = 3


def normalize_station_code(code: Optional[str]) -> Optional[str]:
    """
    Normaliza un codigo de estacion a 3 letras en mayusculas.

    Retorna None si el codigo tiene menos de 3 caracteres (tras strip).
    Los ICAO de 4 letras se truncan a los primeros 3 caracteres.
    """
    if not code:
        return None
    cleaned = code.strip()
    if len(cleaned) < MIN_STATION_CODE_LENGTH:
        return None
    return cleaned[:MIN_STATION_CODE_LENGTH].upper()


@dataclass
class DutyWriteResult:
    """Contadores de un dia escrito."""
    duties_written: int = 0
    sectors_written: int = 0
    sectors_skipped: int = 0


class DutyWriter:
    """
    Persiste los duties de un dia en orden, con sus sectores validos.

    Un sector con codigos invalidos se omite con un warning; el resto del
    dia se escribe igual.
    """

    def __init__(self, duties: DutyRepository):
        self.duties = duties

    async def write(self, roster_day_id: int, entries: Sequence[DutyEntry]) -> DutyWriteResult:
        result = DutyWriteResult()

        for index, duty in enumerate(entries):
            duty_id = await self.duties.create_duty(roster_day_id, index + 1, duty)
            result.duties_written += 1

            for sector in duty.sectors:
                codes = self._validate_sector(sector.dep_code, sector.arr_code)
                if codes is None:
                    logger.warning(
                        f"Sector omitido en dia {roster_day_id} duty #{index + 1}: "
                        f"codigos invalidos dep={sector.dep_code!r} arr={sector.arr_code!r} "
                        f"(vuelo {sector.flight_number or '-'})"
                    )
                    result.sectors_skipped += 1
                    continue

                await self.duties.create_sector(duty_id, sector, *codes)
                result.sectors_written += 1

        return result

    @staticmethod
    def _validate_sector(dep_code: Optional[str], arr_code: Optional[str]) -> Optional[Tuple[str, str]]:
        dep = normalize_station_code(dep_code)
        arr = normalize_station_code(arr_code)
        if dep is None or arr is None:
            return None
        return dep, arr
