"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from rostersync.infrastructure.database.models import (
    RosterPeriodModel,
    RosterVersionModel,
    RosterDayModel,
    DutyAssignmentModel,
    SectorModel,
    RosterSyncRecordModel
)
