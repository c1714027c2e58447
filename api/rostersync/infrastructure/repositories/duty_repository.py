"""
Repositorio de duties y sectores.
"""
from typing import List, Dict, Any

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from rostersync.domain.entities import DutyEntry, SectorEntry
from rostersync.infrastructure.database.models import DutyAssignmentModel, SectorModel


class DutyRepository:
    """Acceso a duty_assignments y sectors."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_duty(self, roster_day_id: int, sequence_order: int, duty: DutyEntry) -> int:
        """
        Inserta un duty para el dia.

        Returns:
            int: ID del duty
        """
        model = DutyAssignmentModel(
            roster_day_id=roster_day_id,
            sequence_order=sequence_order,
            duty_kind=duty.duty_kind,
            duty_type=duty.duty_type,
            rule_id=duty.rule_id,
            check_in=duty.check_in,
            check_in_station=duty.check_in_station,
            check_in_date=duty.check_in_date,
            check_out=duty.check_out,
            check_out_station=duty.check_out_station,
            check_out_date=duty.check_out_date,
            is_instructor_duty=duty.is_instructor_duty,
            learning_title=duty.learning_title,
            notes=list(duty.notes),
        )
        self.db.add(model)
        await self.db.flush()
        return model.id

    async def create_sector(self, duty_assignment_id: int, sector: SectorEntry, dep_code: str, arr_code: str) -> int:
        """
        Inserta un sector con los codigos ya normalizados.

        Returns:
            int: ID del sector
        """
        model = SectorModel(
            duty_assignment_id=duty_assignment_id,
            flight_number=sector.flight_number,
            dep_code=dep_code,
            arr_code=arr_code,
            dep_time=sector.dep_time,
            arr_time=sector.arr_time,
            aircraft=sector.aircraft,
            dep_time_utc=sector.dep_time_utc,
            arr_time_utc=sector.arr_time_utc,
            training_kind=sector.training_kind,
            cockpit_crew=list(sector.cockpit_crew),
            cabin_crew=list(sector.cabin_crew),
            dep_time_is_local=sector.dep_time_is_local,
            arr_time_is_local=sector.arr_time_is_local,
        )
        self.db.add(model)
        await self.db.flush()
        return model.id

    async def delete_for_day(self, roster_day_id: int) -> int:
        """
        Borra los duties (y sus sectores) de un dia.

        Returns:
            int: Duties borrados
        """
        duty_ids = select(DutyAssignmentModel.id).where(DutyAssignmentModel.roster_day_id == roster_day_id)
        await self.db.execute(
            delete(SectorModel)
            .where(SectorModel.duty_assignment_id.in_(duty_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            delete(DutyAssignmentModel)
            .where(DutyAssignmentModel.roster_day_id == roster_day_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def list_with_sectors(self, roster_day_id: int) -> List[Dict[str, Any]]:
        """Duties del dia por sequence_order, cada uno con sus sectores por id."""
        duties_result = await self.db.execute(
            select(DutyAssignmentModel)
            .where(DutyAssignmentModel.roster_day_id == roster_day_id)
            .order_by(DutyAssignmentModel.sequence_order)
        )
        duties = list(duties_result.scalars().all())
        if not duties:
            return []

        sectors_result = await self.db.execute(
            select(SectorModel)
            .where(SectorModel.duty_assignment_id.in_([d.id for d in duties]))
            .order_by(SectorModel.id)
        )
        by_duty: Dict[int, List[SectorModel]] = {}
        for sector in sectors_result.scalars().all():
            by_duty.setdefault(sector.duty_assignment_id, []).append(sector)

        return [
            {"duty": duty, "sectors": by_duty.get(duty.id, [])}
            for duty in duties
        ]
