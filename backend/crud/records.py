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

import traceback
from datetime import datetime
from typing import List, Mapping, Optional

from sqlalchemy import BigInteger, func, insert, literal, select, type_coerce, update
from sqlalchemy.ext.asyncio import AsyncSession

from common.exceptions import NotFound
from common.logger import logger
from common.utils import datetime_to_millis, utc_now
from crud.errors import translate_db_error
from crud.searchquery import SearchQuery
from crud.users import fetch_user_id
from db.models import Observatories, Records, Weather
from entities import ObservationRecord, Observatory, WeatherData
from entities.observation import DEFAULT_UPDATE_REASON


async def add_record(session: AsyncSession, record: ObservationRecord) -> int:
    """
    Store a new observation record for the user named in ``record.owner``.

    Weather goes in first, then the observatory that points at it, then the
    record that points at the observatory. All of it happens in one
    transaction, so a failure never leaves a record behind.
    """
    try:
        owner_id = await fetch_user_id(session, record.owner)

        weather_id = None
        observatory_id = None

        if record.weather is not None:
            weather = record.weather
            stmt = (
                insert(Weather)
                .values(
                    temperature=weather.temperature,
                    pressure=weather.pressure,
                    humidity=weather.humidity,
                    cloud_cover=weather.cloud_cover,
                    light_volume=weather.light_volume,
                )
                .returning(Weather.id)
            )
            weather_id = (await session.execute(stmt)).scalar_one()

        if record.observatory is not None:
            observatory = record.observatory
            stmt = (
                insert(Observatories)
                .values(
                    name=observatory.name,
                    latitude=observatory.latitude,
                    longitude=observatory.longitude,
                    weather_id=weather_id,
                )
                .returning(Observatories.id)
            )
            observatory_id = (await session.execute(stmt)).scalar_one()

        stmt = (
            insert(Records)
            .values(
                identifier=record.identifier,
                description=record.description,
                payload=record.payload,
                right_ascension=record.right_ascension,
                declination=record.declination,
                owner_id=owner_id,
                time_received=record.time_received,
                update_reason=record.update_reason,
                modified=record.update_time,
                observatory_id=observatory_id,
            )
            .returning(Records.id)
        )
        record_id = (await session.execute(stmt)).scalar_one()
        await session.commit()
        logger.debug(f"Stored record {record_id} for owner {owner_id}")
        return record_id

    except NotFound:
        await session.rollback()
        raise

    except Exception as e:
        await session.rollback()
        logger.error(f"Error adding a record: {e}")
        logger.error(traceback.format_exc())
        raise translate_db_error(e)


async def fetch_record_owner_id(session: AsyncSession, record_id: int) -> int:
    """
    Return the owner id of a record.
    """
    try:
        stmt = select(Records.owner_id).where(Records.id == record_id).limit(1)
        result = await session.execute(stmt)
        owner_id = result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error fetching record owner: {e}")
        logger.error(traceback.format_exc())
        raise translate_db_error(e)

    if owner_id is None:
        raise NotFound(f"Record {record_id} not found.")
    return owner_id


async def edit_record(
    session: AsyncSession,
    owner_id: int,
    record_id: int,
    description: Optional[str] = None,
    right_ascension: Optional[str] = None,
    declination: Optional[str] = None,
    update_reason: Optional[str] = None,
    updated_at: Optional[datetime] = None,
) -> bool:
    """
    Update the description and/or coordinates of a record.

    Only fields given as non-None are touched; the update reason and time are
    always rewritten, and the stored update time is never earlier than one
    millisecond after the receive time. The statement matches on owner and id
    together, so a record that belongs to someone else behaves exactly like a
    missing one. Returns True when exactly one row changed.
    """
    values = {}
    if description is not None:
        values["description"] = description
    if right_ascension is not None:
        values["right_ascension"] = right_ascension
    if declination is not None:
        values["declination"] = declination
    values["update_reason"] = update_reason or DEFAULT_UPDATE_REASON
    updated = updated_at if updated_at is not None else utc_now()
    values["modified"] = func.max(
        type_coerce(Records.time_received, BigInteger) + 1,
        literal(datetime_to_millis(updated), BigInteger),
    )

    try:
        stmt = (
            update(Records)
            .where(Records.owner_id == owner_id, Records.id == record_id)
            .values(**values)
        )
        result = await session.execute(stmt)
        if result.rowcount != 1:
            await session.rollback()
            return False
        await session.commit()
        return True

    except Exception as e:
        await session.rollback()
        logger.error(f"Error editing a record: {e}")
        logger.error(traceback.format_exc())
        raise translate_db_error(e)


async def update_owned_record(
    session: AsyncSession,
    username: str,
    record_id: int,
    description: Optional[str] = None,
    right_ascension: Optional[str] = None,
    declination: Optional[str] = None,
    update_reason: Optional[str] = None,
    updated_at: Optional[datetime] = None,
) -> bool:
    """
    Update a record on behalf of ``username``, but only if that user owns it.

    Resolves the acting user, resolves the record's owner and compares them
    before anything is written. A missing record and somebody else's record
    both come back as False so that callers cannot discover other users' record ids.
    Raises NotFound only when the acting user itself does not exist.
    """
    owner_id = await fetch_user_id(session, username)

    try:
        record_owner_id = await fetch_record_owner_id(session, record_id)
    except NotFound:
        return False

    if record_owner_id != owner_id:
        logger.debug(f"User {username} is not the owner of record {record_id}")
        return False

    return await edit_record(
        session,
        owner_id,
        record_id,
        description=description,
        right_ascension=right_ascension,
        declination=declination,
        update_reason=update_reason,
        updated_at=updated_at,
    )


async def search_records(
    session: AsyncSession, search_args: Optional[Mapping[str, str]] = None
) -> List[ObservationRecord]:
    """
    Run a search over all records. ``search_args`` may hold any of nickname,
    identification, before and after; no arguments returns every record.
    Results are ordered by record id.
    """
    search_query = search_args if isinstance(search_args, SearchQuery) else SearchQuery(search_args)

    try:
        result = await session.execute(search_query.statement())
        rows = result.mappings().all()
    except Exception as e:
        logger.error(f"Error searching records: {e}")
        logger.error(traceback.format_exc())
        raise translate_db_error(e)

    return [row_to_record(row) for row in rows]


def row_to_record(row: Mapping) -> ObservationRecord:
    """
    Rebuild an ObservationRecord from one joined search row. The observatory
    name and the weather temperature are non-null columns, so their presence
    decides whether the nested objects exist.
    """
    observatory = None
    if row["observatory_name"] is not None:
        weather = None
        if row["temperature"] is not None:
            weather = WeatherData(
                temperature=row["temperature"],
                pressure=row["pressure"],
                humidity=row["humidity"],
                cloud_cover=row["cloud_cover"],
                light_volume=row["light_volume"],
            )
        observatory = Observatory(
            name=row["observatory_name"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            weather=weather,
        )

    return ObservationRecord(
        id=row["id"],
        identifier=row["identifier"],
        description=row["description"],
        payload=row["payload"],
        right_ascension=row["right_ascension"],
        declination=row["declination"],
        owner=row["owner"],
        time_received=row["time_received"],
        update_time=row["modified"],
        update_reason=row["update_reason"],
        observatory=observatory,
    )
