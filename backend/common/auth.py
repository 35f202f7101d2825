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
import functools
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from common.arguments import arguments
from common.logger import logger
from db.models import Users

# bcrypt only looks at the first 72 bytes, longer passwords are refused up front
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password with bcrypt. A fresh 128 bit salt and the cost factor are
    embedded in the returned string, so verification needs nothing else.
    """
    salt = bcrypt.gensalt(rounds=rounds or arguments.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, passwordhash: str) -> bool:
    """
    Compare the provided password with the stored bcrypt hash. Any failure,
    including a malformed hash, counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), passwordhash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


@functools.lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


async def warm_up() -> None:
    """Build the dummy hash ahead of the first unknown-user login."""
    await asyncio.to_thread(_dummy_hash)


async def fetch_password_hash(dbsession: AsyncSession, username: str) -> Optional[str]:
    """
    Return the stored bcrypt hash for ``username``, or None when there is no
    such user or the lookup fails.
    """
    try:
        stmt = select(Users.password).where(Users.username == username).limit(1)
        result = await dbsession.execute(stmt)
        return result.scalar_one_or_none()
    except Exception as e:
        logger.error(f"Error looking up credentials: {e}")
        return None


async def check_password(password: str, stored_hash: Optional[str]) -> bool:
    """
    Verify ``password`` against ``stored_hash`` in a worker thread.

    A missing hash is still compared against the dummy hash so that an unknown
    user costs the same as a wrong password and gets the same False.
    """
    if stored_hash is None:
        await asyncio.to_thread(verify_password, password or "", _dummy_hash())
        return False
    return await asyncio.to_thread(verify_password, password or "", stored_hash)


async def authenticate_user(dbsession: AsyncSession, username: str, password: str) -> bool:
    """
    Check username and password against the users table. The read transaction
    is ended before the hash comparison starts.
    """
    stored_hash = await fetch_password_hash(dbsession, username)
    await dbsession.rollback()
    return await check_password(password, stored_hash)
