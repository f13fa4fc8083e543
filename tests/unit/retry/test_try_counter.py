"""
Unit tests for the try count stored in event properties.
"""

import pytest

from migrationbus.events import ApplyDatabaseMigrations
from migrationbus.exceptions import MigrationBusError, TryCountParseError
from migrationbus.retry import (
    MAX_EVENT_TRY_COUNT,
    TRY_COUNT_PROPERTY,
    get_try_count,
    increment_try_count,
    set_try_count,
)


@pytest.fixture
def event() -> ApplyDatabaseMigrations:
    return ApplyDatabaseMigrations(database_name="Catalog")


class TestConstants:
    def test_property_name(self) -> None:
        assert TRY_COUNT_PROPERTY == "TryCount"

    def test_max_try_count(self) -> None:
        assert MAX_EVENT_TRY_COUNT == 3


class TestGetTryCount:
    """Tests for get_try_count."""

    def test_absent_is_zero(self, event: ApplyDatabaseMigrations) -> None:
        assert get_try_count(event) == 0

    def test_empty_is_zero(self, event: ApplyDatabaseMigrations) -> None:
        event.properties[TRY_COUNT_PROPERTY] = ""
        assert get_try_count(event) == 0

    def test_reads_decimal_string(self, event: ApplyDatabaseMigrations) -> None:
        event.properties[TRY_COUNT_PROPERTY] = "2"
        assert get_try_count(event) == 2

    def test_malformed_raises(self, event: ApplyDatabaseMigrations) -> None:
        """A non-numeric value is an error, not a silent zero."""
        event.properties[TRY_COUNT_PROPERTY] = "abc"

        with pytest.raises(TryCountParseError) as exc_info:
            get_try_count(event)

        assert exc_info.value.raw_value == "abc"

    @pytest.mark.parametrize("raw", [" 3 ", "3 ", "1_0", "2.0", "٣", "0x1", "+"])
    def test_only_plain_decimals_accepted(self, event: ApplyDatabaseMigrations, raw: str) -> None:
        event.properties[TRY_COUNT_PROPERTY] = raw

        with pytest.raises(TryCountParseError):
            get_try_count(event)

    @pytest.mark.parametrize(("raw", "expected"), [("007", 7), ("+2", 2), ("-1", -1)])
    def test_signed_and_padded_decimals(
        self, event: ApplyDatabaseMigrations, raw: str, expected: int
    ) -> None:
        event.properties[TRY_COUNT_PROPERTY] = raw
        assert get_try_count(event) == expected

    def test_parse_error_is_value_error(self) -> None:
        assert issubclass(TryCountParseError, ValueError)
        assert issubclass(TryCountParseError, MigrationBusError)


class TestSetAndIncrement:
    """Tests for set_try_count and increment_try_count."""

    def test_set_writes_string(self, event: ApplyDatabaseMigrations) -> None:
        set_try_count(event, 5)
        assert event.properties[TRY_COUNT_PROPERTY] == "5"

    def test_set_overwrites(self, event: ApplyDatabaseMigrations) -> None:
        set_try_count(event, 1)
        set_try_count(event, 3)
        assert event.properties == {TRY_COUNT_PROPERTY: "3"}

    def test_increment_from_absent(self, event: ApplyDatabaseMigrations) -> None:
        assert increment_try_count(event) == 1
        assert event.properties[TRY_COUNT_PROPERTY] == "1"

    def test_increment_is_read_plus_one(self, event: ApplyDatabaseMigrations) -> None:
        """After increment, get returns the previous value plus one."""
        for previous in range(0, 6):
            set_try_count(event, previous)
            increment_try_count(event)
            assert get_try_count(event) == previous + 1

    def test_leaves_other_properties_alone(self, event: ApplyDatabaseMigrations) -> None:
        event.properties["CorrelationId"] = "abc-123"
        increment_try_count(event)
        assert event.properties["CorrelationId"] == "abc-123"
