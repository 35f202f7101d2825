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
Shared fixtures: a storage engine on a throw-away database file per test.
"""

import pytest_asyncio

from common.arguments import arguments
from db.storage import StorageEngine
from entities import User

# cheap hashes keep the suite fast; production uses the configured cost
arguments.bcrypt_rounds = 4


@pytest_asyncio.fixture
async def storage(tmp_path):
    engine = await StorageEngine.initialize(str(tmp_path / "db" / "test.db"))
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(storage):
    async with storage.write_session() as session:
        yield session


@pytest_asyncio.fixture
async def alice(storage):
    user = User(username="alice", password="alicepass", email="alice@example.com", nickname="Al")
    await storage.insert_user(user)
    return user


@pytest_asyncio.fixture
async def bob(storage):
    user = User(username="bob", password="bobpass", email="bob@example.com")
    await storage.insert_user(user)
    return user
