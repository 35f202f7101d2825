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


from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from common.auth import MAX_PASSWORD_BYTES
from common.exceptions import StorageError
from common.logger import logger
from entities import User
from handlers.common import parse_model, read_json_body, storage_error_to_http

router = APIRouter()


class RegistrationRequest(BaseModel):
    username: str
    password: str
    email: str
    userNickname: Optional[str] = None


def invalid_string(value: Optional[str]) -> bool:
    return value is None or value == ""


def invalid_email(email: Optional[str]) -> bool:
    return email is None or len(email) < 3 or "@" not in email


@router.post("/registration")
async def register(request: Request):
    """Register a new user. The only endpoint that does not need credentials."""
    data = await read_json_body(request)
    registration = parse_model(RegistrationRequest, data)

    if invalid_string(registration.username):
        raise HTTPException(status_code=400, detail="Username cannot be empty!")
    if invalid_string(registration.password):
        raise HTTPException(status_code=400, detail="Password cannot be empty!")
    if len(registration.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise HTTPException(status_code=400, detail="Password is too long!")
    if invalid_email(registration.email):
        raise HTTPException(status_code=400, detail="Invalid email address!")

    storage = request.app.state.storage
    try:
        if await storage.user_exists(registration.username):
            raise HTTPException(status_code=403, detail="Username is already in use!")
        if await storage.email_in_use(registration.email):
            raise HTTPException(status_code=403, detail="Email is already in use!")

        user = User(
            username=registration.username,
            password=registration.password,
            email=registration.email,
            nickname=registration.userNickname,
        )
        await storage.insert_user(user)

    except StorageError as e:
        raise storage_error_to_http(e)

    logger.info(f"New user registered: {registration.username}")
    return PlainTextResponse("User registered successfully")
