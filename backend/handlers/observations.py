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


from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from common.exceptions import StorageError
from common.logger import logger
from entities import ObservationRecord, Observatory
from handlers.auth import authenticated_username
from handlers.common import parse_model, read_json_body, storage_error_to_http
from services.summarizer import UNAVAILABLE

router = APIRouter()


class ObservatoryIn(BaseModel):
    observatoryName: str
    latitude: Decimal
    longitude: Decimal


class ObservationIn(BaseModel):
    recordIdentifier: str
    recordDescription: str
    recordPayload: str
    recordRightAscension: str
    recordDeclination: str
    observatory: Optional[List[ObservatoryIn]] = None


class ObservationUpdate(BaseModel):
    recordDescription: Optional[str] = None
    recordRightAscension: Optional[str] = None
    recordDeclination: Optional[str] = None
    updateReason: Optional[str] = None


def parse_record_id(request: Request) -> int:
    """The update query must be exactly ``id=<integer>``."""
    params = request.query_params
    if list(params.keys()) != ["id"]:
        raise HTTPException(status_code=400, detail="Invalid update query!")
    try:
        return int(params["id"])
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid update query!")


@router.get("/datarecord")
async def list_records(request: Request, username: str = Depends(authenticated_username)):
    """Every stored record, regardless of owner."""
    try:
        records = await request.app.state.storage.search()
    except StorageError as e:
        raise storage_error_to_http(e)
    return JSONResponse([record.to_dict() for record in records])


@router.post("/datarecord")
async def submit_record(request: Request, username: str = Depends(authenticated_username)):
    """
    Store a new record owned by the authenticated user. An empty description
    is replaced by a generated summary of the payload. Sending an
    ``observatoryWeather`` key asks for the observatory's current weather.
    """
    data = await read_json_body(request)
    submission = parse_model(ObservationIn, data)

    description = submission.recordDescription
    if description == "":
        description = await request.app.state.summarizer.summarize(submission.recordPayload)
        if description == UNAVAILABLE:
            logger.info("Summary unavailable, storing placeholder description")

    observatory = None
    # an empty observatory list is treated like no observatory at all
    if submission.observatory:
        first = submission.observatory[0]
        latitude = str(first.latitude)
        longitude = str(first.longitude)

        weather = None
        if "observatoryWeather" in data:
            weather = await request.app.state.weather.get_weather(latitude, longitude)
            if weather is None:
                logger.warning(f"No weather for {latitude},{longitude}, storing record without it")

        observatory = Observatory(
            name=first.observatoryName, latitude=latitude, longitude=longitude, weather=weather
        )

    record = ObservationRecord.create(
        identifier=submission.recordIdentifier,
        description=description,
        payload=submission.recordPayload,
        right_ascension=submission.recordRightAscension,
        declination=submission.recordDeclination,
        owner=username,
        observatory=observatory,
    )

    try:
        await request.app.state.storage.insert_record(record)
    except StorageError as e:
        raise storage_error_to_http(e)

    return Response(status_code=200)


@router.put("/datarecord")
async def update_record(request: Request, username: str = Depends(authenticated_username)):
    """
    Update description and/or coordinates of one of the caller's records.
    Someone else's record and a missing record both answer 404.
    """
    record_id = parse_record_id(request)
    data = await read_json_body(request)
    changes = parse_model(ObservationUpdate, data)

    try:
        updated = await request.app.state.storage.update_owned_record(
            username,
            record_id,
            description=changes.recordDescription,
            right_ascension=changes.recordRightAscension,
            declination=changes.recordDeclination,
            update_reason=changes.updateReason,
        )
    except StorageError as e:
        raise storage_error_to_http(e)

    if not updated:
        raise HTTPException(status_code=404, detail="Not Found")
    return Response(status_code=200)
