"""
Tests unitarios para RosterNormalizer.

Verifica la resolucion de alias (camelCase, snake_case, heredados),
los defaults y la validacion previa a cualquier escritura.
"""
import pytest
from datetime import date, datetime, timezone

from rostersync.application.dto.roster_dto import RosterUploadRequestDTO
from rostersync.application.services.roster_normalizer import (
    RosterNormalizer,
    FieldAlias,
    is_present,
)
from rostersync.shared.exceptions.domain import ValidationException


def _request(**overrides) -> RosterUploadRequestDTO:
    data = {
        "crew_id": "C1",
        "period_start": "2024-01-01",
        "period_end": "2024-01-31",
        "days": [{"date": "2024-01-05", "rawText": "OFF", "duties": []}],
    }
    data.update(overrides)
    return RosterUploadRequestDTO(**data)


class TestFieldAlias:
    """Tests para la resolucion de alias."""

    def test_first_present_key_wins(self):
        alias = FieldAlias("dep_code", ("depCode", "dep_code", "depIATA"))
        assert alias.resolve({"dep_code": "HKG", "depIATA": "MFM"}) == "HKG"

    def test_empty_string_and_none_are_not_present(self):
        alias = FieldAlias("dep_code", ("depCode", "dep_code"), default="")
        assert alias.resolve({"depCode": "", "dep_code": None}) == ""

    def test_false_counts_as_present(self):
        alias = FieldAlias("flag", ("isLocal", "is_local"), default=True)
        assert alias.resolve({"isLocal": False, "is_local": True}) is False
        assert is_present(False)
        assert not is_present("")

    def test_unparseable_value_falls_back_to_default(self):
        from rostersync.shared.utils.date_utils import parse_date
        alias = FieldAlias("check_in_date", ("checkInDate",), transform=parse_date)
        assert alias.resolve({"checkInDate": "not-a-date"}) is None

    def test_unparseable_value_tries_next_key(self):
        from rostersync.shared.utils.date_utils import parse_date
        alias = FieldAlias("check_in_date", ("checkInDate", "check_in_date"), transform=parse_date)
        assert alias.resolve({"checkInDate": "Fri 05", "check_in_date": "2024-01-05"}) == date(2024, 1, 5)


class TestRosterNormalizer:
    """Tests para normalize_upload."""

    @pytest.fixture
    def normalizer(self):
        return RosterNormalizer()

    def test_normalizes_camel_case_day(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "date": "2024-01-05",
            "dayNumber": 5,
            "weekday": "Fri",
            "rawText": "CX123 MFM-HKG",
            "duties": [{
                "dutyKind": "flight",
                "ruleId": "R1",
                "checkInDate": "2024-01-05",
                "sectors": [{
                    "flightNumber": "CX123",
                    "depIATA": "MFM",
                    "arrIATA": "HKG",
                    "depTimeUTC": "2024-01-05T02:00:00Z",
                }],
            }],
        }]))

        assert upload.crew_id == "C1"
        assert upload.version_number == 1
        day = upload.days[0]
        assert day.date == date(2024, 1, 5)
        assert day.day_number == 5
        assert day.raw_text == "CX123 MFM-HKG"

        duty = day.duties[0]
        assert duty.duty_kind == "flight"
        assert duty.rule_id == "R1"
        assert duty.check_in_date == date(2024, 1, 5)

        sector = duty.sectors[0]
        assert sector.dep_code == "MFM"
        assert sector.arr_code == "HKG"
        assert sector.training_kind == "none"
        assert sector.dep_time_utc == datetime(2024, 1, 5, 2, 0, tzinfo=timezone.utc)

    def test_resolves_snake_case_and_legacy_names(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "iso_date": "2024-01-06T00:00:00Z",
            "raw": "legacy",
            "parsed": [{
                "duty_kind": "training",
                "sectors": [{
                    "flight_number": "T1",
                    "dep_icao": "VMMC",
                    "arr_iata": "hkg",
                    "kind_training_duty": "sim",
                    "dep_time_dt": "2024-01-06T01:00:00+00:00",
                }],
            }],
        }]))

        day = upload.days[0]
        assert day.date == date(2024, 1, 6)
        assert day.raw_text == "legacy"
        sector = day.duties[0].sectors[0]
        assert sector.dep_code == "VMMC"
        assert sector.arr_code == "hkg"
        assert sector.training_kind == "sim"
        assert sector.dep_time_utc is not None

    def test_duty_defaults(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "date": "2024-01-05",
            "duties": [{}],
        }]))
        duty = upload.days[0].duties[0]
        assert duty.duty_kind == "unknown"
        assert duty.rule_id == "unknown"
        assert duty.notes == []
        assert duty.sectors == ()

    def test_display_date_falls_back_to_iso_date(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "date": "Fri 05",
            "isoDate": "2024-01-05",
            "rawText": "OFF",
        }]))
        assert upload.days[0].date == date(2024, 1, 5)

    def test_iso_date_wins_over_date(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "date": "2024-01-04",
            "isoDate": "2024-01-05T00:00:00Z",
        }]))
        assert upload.days[0].date == date(2024, 1, 5)

    def test_parsed_wins_over_duties(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "date": "2024-01-05",
            "parsed": [{"dutyKind": "flight"}],
            "duties": [{"dutyKind": "standby"}],
        }]))
        assert [d.duty_kind for d in upload.days[0].duties] == ["flight"]

    def test_days_from_json_data_roster(self, normalizer):
        upload = normalizer.normalize_upload(_request(
            days=None,
            json_data={"roster": [{"date": "2024-01-07", "rawText": "OFF"}]},
        ))
        assert [d.date for d in upload.days] == [date(2024, 1, 7)]
        assert upload.payload == {"roster": [{"date": "2024-01-07", "rawText": "OFF"}]}

    def test_days_preserve_input_order(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[
            {"date": "2024-01-09"},
            {"date": "2024-01-02"},
        ]))
        assert [d.date for d in upload.days] == [date(2024, 1, 9), date(2024, 1, 2)]

    @pytest.mark.parametrize("overrides, field", [
        ({"crew_id": None}, "crew_id"),
        ({"crew_id": "   "}, "crew_id"),
        ({"period_start": None}, "period_start"),
        ({"period_end": None}, "period_end"),
        ({"days": None}, "days"),
        ({"days": []}, "days"),
    ])
    def test_missing_required_fields(self, normalizer, overrides, field):
        with pytest.raises(ValidationException) as exc_info:
            normalizer.normalize_upload(_request(**overrides))
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["field"] == field

    def test_day_without_date_is_rejected(self, normalizer):
        with pytest.raises(ValidationException) as exc_info:
            normalizer.normalize_upload(_request(days=[
                {"date": "2024-01-05"},
                {"rawText": "sin fecha"},
            ]))
        assert exc_info.value.details["field"] == "days[1].date"

    def test_inverted_period_is_rejected(self, normalizer):
        with pytest.raises(ValidationException):
            normalizer.normalize_upload(_request(period_start="2024-02-01", period_end="2024-01-01"))

    def test_non_object_sector_becomes_empty_entry(self, normalizer):
        upload = normalizer.normalize_upload(_request(days=[{
            "date": "2024-01-05",
            "duties": [{"sectors": ["basura"]}],
        }]))
        sector = upload.days[0].duties[0].sectors[0]
        assert sector.dep_code == ""
        assert sector.arr_code == ""
