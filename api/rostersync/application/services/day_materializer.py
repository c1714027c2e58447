"""
Materializacion de un dia del roster.

Por cada fecha: se toma el punto de serializacion de (periodo, fecha),
se lee el dia activo y solo si el contenido cambio se desactiva el
anterior, se escribe la fila nueva como activa y se escriben sus duties.
Todo dentro de la transaccion del upload.
"""
from loguru import logger

from rostersync.application.services.content_comparator import (
    content_digest,
    duty_material,
    has_changed,
)
from rostersync.application.services.duty_writer import DutyWriter
from rostersync.domain.entities import DayEntry, DayOutcome
from rostersync.infrastructure.database.locks import acquire_date_lock
from rostersync.infrastructure.repositories.day_repository import DayRepository
from rostersync.infrastructure.repositories.duty_repository import DutyRepository


class DayMaterializer:
    """Materializa dias sobre una sesion con transaccion abierta."""

    def __init__(self, days: DayRepository, duties: DutyRepository):
        self.days = days
        self.duties = duties
        self.writer = DutyWriter(duties)

    async def materialize(self, period_id: int, version_id: int, entry: DayEntry) -> DayOutcome:
        """
        Materializa un dia normalizado.

        Returns:
            DayOutcome con written=False si el contenido no cambio
        """
        await acquire_date_lock(self.days.db, period_id, entry.date)

        material = duty_material(entry.duties)
        previous = await self.days.get_active_snapshot(period_id, entry.date)
        if not has_changed(previous, entry.raw_text, material):
            return DayOutcome(date=entry.date, written=False, day_id=previous.id)

        # Primero desactivar: el indice parcial no admite dos activos a la vez
        await self.days.deactivate_active(period_id, entry.date)

        digest = content_digest(entry.raw_text, material)
        day_id, existed = await self.days.upsert_day(period_id, version_id, entry, digest)

        if existed:
            # Re-upload de la misma version: se reemplazan los duties
            removed = await self.duties.delete_for_day(day_id)
            logger.debug(f"Dia {entry.date} reescrito en version {version_id} ({removed} duties reemplazados)")

        written = await self.writer.write(day_id, entry.duties)
        return DayOutcome(
            date=entry.date,
            written=True,
            day_id=day_id,
            sectors_written=written.sectors_written,
            sectors_skipped=written.sectors_skipped,
        )
