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


import json
from decimal import Decimal
from typing import Any, Dict, Type, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

from common.exceptions import (
    ConnectivityFailure,
    ConstraintViolation,
    InvalidFilter,
    NotFound,
    StorageError,
)
from common.logger import logger

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_body(request: Request) -> Dict[str, Any]:
    """
    Read a JSON object from the request body. Floats are parsed as Decimal so
    coordinates keep every digit the client sent.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != "application/json":
        raise HTTPException(status_code=400, detail="Incorrect Content-Type")

    body = await request.body()
    if not body:
        raise HTTPException(status_code=400, detail="Request body is empty")

    try:
        data = json.loads(body, parse_float=Decimal)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON format!")

    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON format!")
    return data


def parse_model(model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
        raise HTTPException(status_code=400, detail=f"Invalid field [{fields}]")


def storage_error_to_http(error: StorageError) -> HTTPException:
    """Translate a storage error into the HTTP status the API reports for it."""
    if isinstance(error, ConstraintViolation):
        return HTTPException(status_code=403, detail=error.message)
    if isinstance(error, InvalidFilter):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, NotFound):
        return HTTPException(status_code=404, detail="Not Found")
    if isinstance(error, ConnectivityFailure):
        logger.error(f"Database unavailable: {error}")
        return HTTPException(status_code=503, detail="Service Unavailable")
    logger.error(f"Unhandled storage error: {error}")
    return HTTPException(status_code=500, detail="Internal Server Error")
