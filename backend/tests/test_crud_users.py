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
Unit tests for user CRUD operations.
"""

import bcrypt
import pytest
from sqlalchemy import func, select

from common.exceptions import ConstraintViolation, NotFound
from crud.users import add_user, email_in_use, fetch_user_id, username_exists
from db.models import Users
from entities import User


@pytest.mark.asyncio
class TestUsersCRUD:
    """Test suite for user CRUD operations."""

    async def test_add_user_success(self, db_session):
        """Test successful user creation."""
        user = User(
            username="testuser",
            password="securepassword123",
            email="test@example.com",
            nickname="Tester",
        )

        new_id = await add_user(db_session, user)

        assert isinstance(new_id, int)
        row = (await db_session.execute(select(Users).where(Users.id == new_id))).scalar_one()
        assert row.username == "testuser"
        assert row.email == "test@example.com"
        assert row.nickname == "Tester"

        # Verify password is hashed
        assert row.password != "securepassword123"
        assert bcrypt.checkpw(
            "securepassword123".encode("utf-8"), row.password.encode("utf-8")
        )

    async def test_add_user_nickname_defaults_to_username(self, db_session):
        """Test that a user without nickname is known by the username."""
        new_id = await add_user(db_session, User("plainuser", "pass123", "plain@example.com"))

        row = (await db_session.execute(select(Users).where(Users.id == new_id))).scalar_one()
        assert row.nickname == "plainuser"

    async def test_add_user_missing_username(self, db_session):
        """Test user creation fails without username."""
        with pytest.raises(ValueError, match="Username cannot be empty"):
            await add_user(db_session, User("", "pass123", "test@example.com"))

    async def test_add_user_missing_password(self, db_session):
        """Test user creation fails without password."""
        with pytest.raises(ValueError, match="Password cannot be empty"):
            await add_user(db_session, User("testuser", "", "test@example.com"))

    async def test_add_user_duplicate_username(self, db_session):
        """Test that a second user with the same username is rejected."""
        await add_user(db_session, User("dupe", "pass1", "first@example.com"))

        with pytest.raises(ConstraintViolation) as excinfo:
            await add_user(db_session, User("dupe", "pass2", "second@example.com"))

        assert excinfo.value.field == "username"
        count = await db_session.scalar(
            select(func.count()).select_from(Users).where(Users.username == "dupe")
        )
        assert count == 1

    async def test_add_user_duplicate_email(self, db_session):
        """Test that a second user with the same email is rejected."""
        await add_user(db_session, User("first", "pass1", "shared@example.com"))

        with pytest.raises(ConstraintViolation) as excinfo:
            await add_user(db_session, User("second", "pass2", "shared@example.com"))

        assert excinfo.value.field == "email"
        assert "Email is already in use" in excinfo.value.message

    async def test_fetch_user_id(self, db_session):
        """Test resolving a username to its id."""
        first_id = await add_user(db_session, User("user1", "pass1", "user1@example.com"))
        second_id = await add_user(db_session, User("user2", "pass2", "user2@example.com"))

        assert await fetch_user_id(db_session, "user1") == first_id
        assert await fetch_user_id(db_session, "user2") == second_id
        assert first_id != second_id

    async def test_fetch_user_id_not_found(self, db_session):
        """Test that an unknown username raises NotFound."""
        with pytest.raises(NotFound):
            await fetch_user_id(db_session, "ghost")

    async def test_username_and_email_checks(self, db_session):
        """Test the pre-registration existence checks."""
        await add_user(db_session, User("user1", "pass1", "user1@example.com"))

        assert await username_exists(db_session, "user1") is True
        assert await username_exists(db_session, "user2") is False
        assert await email_in_use(db_session, "user1@example.com") is True
        assert await email_in_use(db_session, "other@example.com") is False
