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
Storage engine: the one owner of the database connection pool.

Create it once at startup with ``await StorageEngine.initialize(path)`` and pass
the returned handle to whatever needs the database. Every operation borrows a
session from the pool for its own duration and gives it back on every exit path.
"""

import asyncio
import os
import threading
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Union

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import crud
from common.arguments import arguments
from common.auth import check_password, fetch_password_hash, warm_up
from common.exceptions import StorageInitError
from common.logger import logger
from crud.searchquery import SearchQuery
from db.models import Base
from entities import ObservationRecord, User


class StorageEngine:
    """
    Connection-pooled SQLite storage for users and observation records.

    At most one instance exists per backing file in a process. ``initialize``
    uses double-checked locking on the instance registry and an async lock
    around schema creation, so concurrent first callers get the same instance
    and the schema is applied exactly once.

    Reads go through ``session()`` and begin deferred, so they run alongside a
    writer. Writes go through ``write_session()`` and begin with BEGIN
    IMMEDIATE, so concurrent writers queue on the busy timeout.
    """

    _instances: Dict[str, "StorageEngine"] = {}
    _instances_lock = threading.Lock()

    def __init__(
        self,
        path: str,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
        pool_timeout: Optional[float] = None,
        pool_recycle: Optional[int] = None,
        busy_timeout: Optional[float] = None,
    ):
        self.path = os.path.abspath(path)
        self._create_file()

        self.engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.path}",
            echo=False,
            pool_size=pool_size if pool_size is not None else arguments.pool_size,
            max_overflow=max_overflow if max_overflow is not None else arguments.pool_max_overflow,
            pool_timeout=pool_timeout if pool_timeout is not None else arguments.pool_timeout,
            pool_recycle=pool_recycle if pool_recycle is not None else arguments.pool_recycle,
            pool_pre_ping=True,
            connect_args={
                "check_same_thread": False,
                "timeout": busy_timeout if busy_timeout is not None else arguments.busy_timeout,
            },
        )
        self._install_sqlite_hooks()
        self.sessionmaker = async_sessionmaker(
            bind=self.engine, expire_on_commit=False, class_=AsyncSession
        )
        # same pool, but transactions take the write lock when they begin
        self.write_engine = self.engine.execution_options(begin_immediate=True)
        self.write_sessionmaker = async_sessionmaker(
            bind=self.write_engine, expire_on_commit=False, class_=AsyncSession
        )
        self._schema_lock = asyncio.Lock()
        self._schema_ready = False

    @classmethod
    async def initialize(cls, path: str, **pool_options) -> "StorageEngine":
        """
        Return the storage engine for ``path``, creating the file, the pool and
        the schema on first use. Safe to call any number of times.

        Raises StorageInitError when the file cannot be created or the schema
        cannot be applied.
        """
        key = os.path.abspath(path)
        instance = cls._instances.get(key)
        if instance is None:
            with cls._instances_lock:
                instance = cls._instances.get(key)
                if instance is None:
                    instance = cls(key, **pool_options)
                    cls._instances[key] = instance
        await instance._ensure_schema()
        return instance

    def _create_file(self):
        if os.path.isdir(self.path):
            raise StorageInitError(f"Database path {self.path} is a directory.")
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            if not os.path.exists(self.path):
                logger.info(f"Creating database file {self.path}")
                with open(self.path, "a"):
                    pass
        except OSError as e:
            raise StorageInitError(f"Cannot create database file {self.path}: {e}") from e

    def _install_sqlite_hooks(self):
        @event.listens_for(self.engine.sync_engine, "connect")
        def on_connect(dbapi_connection, connection_record):
            # let the begin hook below emit BEGIN itself
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(self.engine.sync_engine, "begin")
        def on_begin(conn):
            # writers take the lock up front so they wait on the busy timeout
            # instead of failing when a read lock is upgraded; readers stay deferred
            if conn.get_execution_options().get("begin_immediate"):
                conn.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                conn.exec_driver_sql("BEGIN")

    async def _ensure_schema(self):
        if self._schema_ready:
            return
        async with self._schema_lock:
            if self._schema_ready:
                return
            try:
                await self._create_schema()
            except Exception as e:
                logger.error(f"Error applying database schema: {e}")
                raise StorageInitError(f"Cannot apply database schema: {e}") from e
            await warm_up()
            self._schema_ready = True
            logger.info(f"Database ready at {self.path}")

    async def _create_schema(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def session(self) -> AsyncSession:
        """A session for reads. Its transactions begin deferred."""
        return self.sessionmaker()

    def write_session(self) -> AsyncSession:
        """A session whose transactions begin with BEGIN IMMEDIATE."""
        return self.write_sessionmaker()

    async def dispose(self):
        """Close every pooled connection and forget this instance."""
        with self._instances_lock:
            if self._instances.get(self.path) is self:
                del self._instances[self.path]
        await self.engine.dispose()

    async def insert_user(self, user: User) -> int:
        async with self.write_session() as dbsession:
            return await crud.users.add_user(dbsession, user)

    async def user_exists(self, username: str) -> bool:
        async with self.session() as dbsession:
            return await crud.users.username_exists(dbsession, username)

    async def email_in_use(self, email: str) -> bool:
        async with self.session() as dbsession:
            return await crud.users.email_in_use(dbsession, email)

    async def authenticate(self, username: str, password: str) -> bool:
        async with self.session() as dbsession:
            stored_hash = await fetch_password_hash(dbsession, username)
        return await check_password(password, stored_hash)

    async def resolve_owner_id(self, username: str) -> int:
        async with self.session() as dbsession:
            return await crud.users.fetch_user_id(dbsession, username)

    async def record_owner_id(self, record_id: int) -> int:
        async with self.session() as dbsession:
            return await crud.records.fetch_record_owner_id(dbsession, record_id)

    async def insert_record(self, record: ObservationRecord) -> int:
        async with self.write_session() as dbsession:
            return await crud.records.add_record(dbsession, record)

    async def update_record(
        self,
        owner_id: int,
        record_id: int,
        description: Optional[str] = None,
        right_ascension: Optional[str] = None,
        declination: Optional[str] = None,
        update_reason: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> bool:
        async with self.write_session() as dbsession:
            return await crud.records.edit_record(
                dbsession,
                owner_id,
                record_id,
                description=description,
                right_ascension=right_ascension,
                declination=declination,
                update_reason=update_reason,
                updated_at=updated_at,
            )

    async def update_owned_record(
        self,
        username: str,
        record_id: int,
        description: Optional[str] = None,
        right_ascension: Optional[str] = None,
        declination: Optional[str] = None,
        update_reason: Optional[str] = None,
        updated_at: Optional[datetime] = None,
    ) -> bool:
        async with self.write_session() as dbsession:
            return await crud.records.update_owned_record(
                dbsession,
                username,
                record_id,
                description=description,
                right_ascension=right_ascension,
                declination=declination,
                update_reason=update_reason,
                updated_at=updated_at,
            )

    async def search(
        self, filters: Optional[Union[Mapping[str, str], SearchQuery]] = None
    ) -> List[ObservationRecord]:
        async with self.session() as dbsession:
            return await crud.records.search_records(dbsession, filters)
