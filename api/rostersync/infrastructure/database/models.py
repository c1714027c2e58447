"""
Modelos de base de datos (ORM).

Jerarquia versionada del roster:
periodo -> version -> dia -> duty -> sector, mas el registro de auditoria
de cada sincronizacion completada.
"""
from sqlalchemy import (
    Column, String, Integer, DateTime, Date, Text, JSON, Boolean,
    ForeignKey, UniqueConstraint, Index, text
)
from sqlalchemy.sql import func

from rostersync.infrastructure.database.session import Base


class RosterPeriodModel(Base):
    """
    Ventana de reporte de un tripulante.

    Se crea en el primer upload que toca la ventana y se actualiza
    (last_updated_at) en cada upload posterior.
    """

    __tablename__ = "roster_periods"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(255), nullable=False, index=True)
    crew_id = Column(Text, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "owner_id", "crew_id", "period_start", "period_end",
            name="uq_roster_periods_window"
        ),
    )

    def __repr__(self):
        return f"<RosterPeriod(id={self.id}, crew={self.crew_id}, {self.period_start}..{self.period_end})>"


class RosterVersionModel(Base):
    """
    Una generacion de upload dentro de un periodo.

    Inmutable salvo re-upload del mismo version_number, que sobrescribe
    el payload y parsed_at.
    """

    __tablename__ = "roster_versions"

    id = Column(Integer, primary_key=True, index=True)
    period_id = Column(
        Integer, ForeignKey("roster_periods.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_number = Column(Integer, nullable=False)
    source_file_name = Column(Text, nullable=True)
    source_file_size = Column(Integer, nullable=True)
    json_data = Column(JSON, nullable=False)
    payload_digest = Column(String(64), nullable=False)
    name = Column(Text, nullable=True)
    flight_time = Column(Text, nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=True)
    # Metadatos del cliente que subio el roster
    app_version = Column(Text, nullable=True)
    device_model = Column(Text, nullable=True)
    os_version = Column(Text, nullable=True)
    parsed_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("period_id", "version_number", name="uq_roster_versions_number"),
    )

    def __repr__(self):
        return f"<RosterVersion(id={self.id}, period={self.period_id}, number={self.version_number})>"


class RosterDayModel(Base):
    """
    Programacion de un dia tal como se conocio en una version concreta.

    Invariante: por (period_id, date) existe a lo sumo una fila con
    is_active_for_date = true. El indice parcial lo garantiza a nivel BD.
    """

    __tablename__ = "roster_days"

    id = Column(Integer, primary_key=True, index=True)
    period_id = Column(
        Integer, ForeignKey("roster_periods.id", ondelete="CASCADE"), nullable=False
    )
    source_version_id = Column(
        Integer, ForeignKey("roster_versions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    day_number = Column(Integer, nullable=True)
    weekday = Column(Text, nullable=True)
    iso_date = Column(Text, nullable=True)
    raw_text = Column(Text, nullable=False, default="")
    parsed_data = Column(JSON, nullable=False)
    content_digest = Column(String(64), nullable=False)
    is_active_for_date = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("period_id", "date", "source_version_id", name="uq_roster_days_version_date"),
        Index("ix_roster_days_period_date", "period_id", "date"),
        Index(
            "uq_roster_days_active_date",
            "period_id",
            "date",
            unique=True,
            postgresql_where=text("is_active_for_date = true"),
            sqlite_where=text("is_active_for_date = 1"),
        ),
    )

    def __repr__(self):
        return f"<RosterDay(id={self.id}, date={self.date}, active={self.is_active_for_date})>"


class DutyAssignmentModel(Base):
    """Duty ordenado dentro de un dia. Se conserva cuando el dia queda inactivo."""

    __tablename__ = "duty_assignments"

    id = Column(Integer, primary_key=True, index=True)
    roster_day_id = Column(
        Integer, ForeignKey("roster_days.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence_order = Column(Integer, nullable=False)
    duty_kind = Column(Text, nullable=False, default="unknown")
    duty_type = Column(Text, nullable=True)
    rule_id = Column(Text, nullable=False, default="unknown")
    check_in = Column(Text, nullable=True)
    check_in_station = Column(Text, nullable=True)
    check_in_date = Column(Date, nullable=True)
    check_out = Column(Text, nullable=True)
    check_out_station = Column(Text, nullable=True)
    check_out_date = Column(Date, nullable=True)
    is_instructor_duty = Column(Boolean, nullable=True)
    learning_title = Column(Text, nullable=True)
    notes = Column(JSON, nullable=False, default=list)

    def __repr__(self):
        return f"<DutyAssignment(id={self.id}, day={self.roster_day_id}, seq={self.sequence_order})>"


class SectorModel(Base):
    """Tramo de vuelo dentro de un duty."""

    __tablename__ = "sectors"

    id = Column(Integer, primary_key=True, index=True)
    duty_assignment_id = Column(
        Integer, ForeignKey("duty_assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    flight_number = Column(Text, nullable=False, default="")
    dep_code = Column(String(3), nullable=False)
    arr_code = Column(String(3), nullable=False)
    dep_time = Column(Text, nullable=True)
    arr_time = Column(Text, nullable=True)
    aircraft = Column(Text, nullable=True)
    dep_time_utc = Column(DateTime(timezone=True), nullable=True)
    arr_time_utc = Column(DateTime(timezone=True), nullable=True)
    training_kind = Column(Text, nullable=False, default="none")
    cockpit_crew = Column(JSON, nullable=False, default=list)
    cabin_crew = Column(JSON, nullable=False, default=list)
    dep_time_is_local = Column(Boolean, nullable=False, default=False)
    arr_time_is_local = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<Sector(id={self.id}, {self.flight_number} {self.dep_code}->{self.arr_code})>"


class RosterSyncRecordModel(Base):
    """
    Registro de auditoria append-only por cada sincronizacion completada.

    period_id no es FK: borrar un periodo no reescribe la auditoria.
    """

    __tablename__ = "roster_sync_records"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(255), nullable=False, index=True)
    period_id = Column(Integer, nullable=True, index=True)
    direction = Column(String(20), nullable=False, default="upload")
    days_synced = Column(Integer, nullable=False, default=0)
    sectors_synced = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="success")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<RosterSyncRecord(id={self.id}, period={self.period_id}, status={self.status})>"
