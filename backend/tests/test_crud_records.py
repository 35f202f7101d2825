# Copyright (c) 2025 Efstratios Goudelis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
Unit tests for observation record CRUD operations.
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from common.exceptions import NotFound, StorageError
from common.utils import utc_now
from crud.records import (
    add_record,
    edit_record,
    fetch_record_owner_id,
    search_records,
    update_owned_record,
)
from crud.users import fetch_user_id
from db.models import Observatories, Records, Weather
from entities import ObservationRecord, Observatory, WeatherData


def make_record(owner="alice", identifier="M31", observatory=None, received=None):
    return ObservationRecord.create(
        identifier=identifier,
        description="Andromeda galaxy",
        payload="raw payload",
        right_ascension="00h42m44s",
        declination="+41d16m09s",
        owner=owner,
        observatory=observatory,
        received=received,
    )


@pytest.mark.asyncio
class TestRecordsCRUD:
    """Test suite for observation record CRUD operations."""

    async def test_add_record_without_observatory(self, alice, db_session):
        """Test storing a bare record."""
        record_id = await add_record(db_session, make_record())

        assert isinstance(record_id, int)
        results = await search_records(db_session)
        assert len(results) == 1
        stored = results[0]
        assert stored.id == record_id
        assert stored.identifier == "M31"
        assert stored.owner == "Al"
        assert stored.observatory is None
        assert stored.has_weather is False
        assert stored.is_modified is False

    async def test_add_record_with_observatory(self, alice, db_session):
        """Test storing a record with an observatory but no weather."""
        observatory = Observatory(name="Metsähovi", latitude="60.2172", longitude="24.3933")
        await add_record(db_session, make_record(observatory=observatory))

        stored = (await search_records(db_session))[0]
        assert stored.observatory == observatory
        assert stored.weather is None

        weather_rows = await db_session.scalar(select(func.count()).select_from(Weather))
        assert weather_rows == 0

    async def test_add_record_with_observatory_and_weather(self, alice, db_session):
        """Test storing the full nesting of record, observatory and weather."""
        weather = WeatherData(temperature="271.35", pressure="1012.3", humidity="88.0")
        observatory = Observatory(
            name="Metsähovi", latitude="60.2172", longitude="24.3933", weather=weather
        )
        await add_record(db_session, make_record(observatory=observatory))

        stored = (await search_records(db_session))[0]
        assert stored.observatory.name == "Metsähovi"
        assert stored.weather == weather
        assert stored.weather.cloud_cover is None

    async def test_add_record_preserves_received_time(self, alice, db_session):
        """Test that the receive time survives the round trip to millisecond precision."""
        received = utc_now() - timedelta(days=3)
        await add_record(db_session, make_record(received=received))

        stored = (await search_records(db_session))[0]
        assert stored.time_received == received
        assert stored.update_time == received

    async def test_add_record_unknown_owner(self, db_session):
        """Test that a record for an unknown user is rejected and nothing is left behind."""
        observatory = Observatory(
            name="Nowhere",
            latitude="0.0",
            longitude="0.0",
            weather=WeatherData(temperature="280.00"),
        )

        with pytest.raises(NotFound):
            await add_record(db_session, make_record(owner="ghost", observatory=observatory))

        for table in (Records, Observatories, Weather):
            count = await db_session.scalar(select(func.count()).select_from(table))
            assert count == 0

    async def test_fetch_record_owner_id(self, alice, db_session):
        """Test resolving the owner of a record."""
        record_id = await add_record(db_session, make_record())

        assert await fetch_record_owner_id(db_session, record_id) == await fetch_user_id(
            db_session, "alice"
        )

    async def test_fetch_record_owner_id_not_found(self, db_session):
        """Test that a missing record raises NotFound."""
        with pytest.raises(NotFound):
            await fetch_record_owner_id(db_session, 999)

    async def test_owner_updates_record(self, alice, db_session):
        """Test that the owner can change description and coordinates."""
        received = utc_now() - timedelta(hours=1)
        record_id = await add_record(db_session, make_record(received=received))

        updated = await update_owned_record(
            db_session,
            "alice",
            record_id,
            description="Andromeda, second look",
            right_ascension="00h42m45s",
            update_reason="Better seeing",
        )

        assert updated is True
        stored = (await search_records(db_session))[0]
        assert stored.description == "Andromeda, second look"
        assert stored.right_ascension == "00h42m45s"
        assert stored.declination == "+41d16m09s"
        assert stored.update_reason == "Better seeing"
        assert stored.update_time > stored.time_received
        assert stored.is_modified is True

    async def test_update_without_reason_uses_default(self, alice, db_session):
        """Test that an update with no reason stores the default reason."""
        record_id = await add_record(
            db_session, make_record(received=utc_now() - timedelta(minutes=5))
        )

        assert await update_owned_record(db_session, "alice", record_id, description="x")
        stored = (await search_records(db_session))[0]
        assert stored.update_reason == "N/A"

    async def test_non_owner_cannot_update(self, alice, bob, db_session):
        """Test that another user's update leaves the record untouched."""
        record_id = await add_record(db_session, make_record())

        updated = await update_owned_record(db_session, "bob", record_id, description="hijacked")

        assert updated is False
        stored = (await search_records(db_session))[0]
        assert stored.description == "Andromeda galaxy"
        assert stored.is_modified is False

    async def test_update_missing_record(self, alice, db_session):
        """Test that updating a record that does not exist reports no change."""
        assert await update_owned_record(db_session, "alice", 12345, description="x") is False

    async def test_update_by_unknown_user(self, alice, db_session):
        """Test that an unknown acting user raises NotFound."""
        record_id = await add_record(db_session, make_record())

        with pytest.raises(NotFound):
            await update_owned_record(db_session, "ghost", record_id, description="x")

    async def test_edit_record_matches_owner_and_id(self, alice, bob, db_session):
        """Test that the owner id is part of the update condition."""
        record_id = await add_record(db_session, make_record())
        bob_id = await fetch_user_id(db_session, "bob")

        assert await edit_record(db_session, bob_id, record_id, description="x") is False
        assert await edit_record(db_session, bob_id + 100, record_id, description="x") is False

    async def test_search_by_nickname(self, alice, bob, db_session):
        """Test that nickname search matches on the owner's nickname."""
        await add_record(db_session, make_record(owner="alice", identifier="A1"))
        await add_record(db_session, make_record(owner="bob", identifier="B1"))
        await add_record(db_session, make_record(owner="alice", identifier="A2"))

        results = await search_records(db_session, {"nickname": "Al"})

        assert [r.identifier for r in results] == ["A1", "A2"]
        assert all(r.owner == "Al" for r in results)
        assert await search_records(db_session, {"nickname": "alice"}) == []

    async def test_failed_record_insert_rolls_back_nested_rows(self, alice, db_session):
        """Test that a record insert failing after weather and observatory leaves nothing."""
        received = utc_now()
        broken = ObservationRecord(
            identifier=None,
            description="desc",
            payload="payload",
            right_ascension="00h",
            declination="+41d",
            owner="alice",
            time_received=received,
            update_time=received,
            observatory=Observatory(
                "Tuorla", "60.4167", "22.4433", weather=WeatherData(temperature="270.15")
            ),
        )

        with pytest.raises(StorageError):
            await add_record(db_session, broken)

        for table in (Weather, Observatories, Records):
            count = await db_session.scalar(select(func.count()).select_from(table))
            assert count == 0

    async def test_update_in_same_millisecond_is_still_modified(self, alice, db_session):
        """Test that an update stamped at the receive time still shows as modified."""
        received = utc_now()
        record_id = await add_record(db_session, make_record(received=received))
        owner_id = await fetch_user_id(db_session, "alice")

        assert await edit_record(
            db_session, owner_id, record_id, description="quick fix", updated_at=received
        )

        stored = (await search_records(db_session))[0]
        assert stored.update_time == received + timedelta(milliseconds=1)
        assert stored.is_modified is True
        assert stored.to_dict()["updateReason"] == "N/A"

    async def test_update_with_earlier_clock_lands_after_receive_time(self, alice, db_session):
        """Test that a backwards clock cannot push the update before the receive time."""
        received = utc_now()
        record_id = await add_record(db_session, make_record(received=received))
        owner_id = await fetch_user_id(db_session, "alice")

        await edit_record(
            db_session, owner_id, record_id, updated_at=received - timedelta(seconds=10)
        )

        stored = (await search_records(db_session))[0]
        assert stored.update_time > stored.time_received
