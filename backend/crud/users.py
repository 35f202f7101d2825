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

import asyncio
import traceback

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from common.auth import hash_password
from common.exceptions import ConstraintViolation, NotFound
from common.logger import logger
from crud.errors import translate_db_error
from db.models import Users
from entities import User


async def add_user(session: AsyncSession, user: User) -> int:
    """
    Create and add a new user, storing only the bcrypt hash of the password.

    Duplicate usernames or emails are rejected by the unique constraints of the
    users table, which also covers two registrations racing each other.
    """
    try:
        assert user.username, "Username cannot be empty."
        assert user.password, "Password cannot be empty."
        assert user.email, "Email cannot be empty."

        password_hash = await asyncio.to_thread(hash_password, user.password)

        stmt = (
            insert(Users)
            .values(
                username=user.username,
                password=password_hash,
                email=user.email,
                nickname=user.nickname or user.username,
            )
            .returning(Users.id)
        )
        result = await session.execute(stmt)
        new_id = result.scalar_one()
        await session.commit()
        logger.info(f"Registered user {user.username} with id {new_id}")
        return new_id

    except IntegrityError as e:
        await session.rollback()
        field = _violated_field(e)
        logger.warning(f"Rejected registration for {user.username}: duplicate {field}")
        raise ConstraintViolation(f"{field.capitalize()} is already in use!", field=field) from e

    except AssertionError as e:
        await session.rollback()
        raise ValueError(str(e)) from e

    except Exception as e:
        await session.rollback()
        logger.error(f"Error adding user: {e}")
        logger.error(traceback.format_exc())
        raise translate_db_error(e)


async def fetch_user_id(session: AsyncSession, username: str) -> int:
    """
    Resolve a username to its numeric user id.
    """
    try:
        stmt = select(Users.id).where(Users.username == username).limit(1)
        result = await session.execute(stmt)
        user_id = result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error fetching user id: {e}")
        logger.error(traceback.format_exc())
        raise translate_db_error(e)

    if user_id is None:
        raise NotFound(f"User {username} not found.")
    return user_id


async def username_exists(session: AsyncSession, username: str) -> bool:
    try:
        stmt = select(Users.id).where(Users.username == username).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
    except Exception as e:
        logger.error(f"Error checking username: {e}")
        raise translate_db_error(e)


async def email_in_use(session: AsyncSession, email: str) -> bool:
    try:
        stmt = select(Users.id).where(Users.email == email).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
    except Exception as e:
        logger.error(f"Error checking email: {e}")
        raise translate_db_error(e)


def _violated_field(error: IntegrityError) -> str:
    # sqlite reports "UNIQUE constraint failed: users.email"
    message = str(error.orig) if error.orig is not None else str(error)
    if "users.email" in message:
        return "email"
    return "username"
