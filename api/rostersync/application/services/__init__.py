"""
Servicios de aplicacion.

Contiene las piezas del pipeline de upload que no pertenecen
a un caso de uso especifico.
"""
from rostersync.application.services.roster_normalizer import RosterNormalizer, FieldAlias
from rostersync.application.services.content_comparator import (
    canonical_json,
    content_digest,
    payload_digest,
    has_changed,
    duty_material,
)
from rostersync.application.services.duty_writer import DutyWriter, normalize_station_code
from rostersync.application.services.day_materializer import DayMaterializer

__all__ = [
    # Ingreso
    "RosterNormalizer",
    "FieldAlias",
    # Deteccion de cambios
    "canonical_json",
    "content_digest",
    "payload_digest",
    "has_changed",
    "duty_material",
    # Escritura
    "DutyWriter",
    "normalize_station_code",
    "DayMaterializer",
]
