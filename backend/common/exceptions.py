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


class StorageError(Exception):

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message  # Additional storage for convenience

    def __str__(self):
        base_str = f"{type(self).__name__}: {self.message}"
        return base_str


class StorageInitError(StorageError):
    """The backing file or the schema could not be set up. Fatal for the process."""


class ConstraintViolation(StorageError):
    """A unique constraint rejected the write (duplicate username or email)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFound(StorageError):
    """A referenced user or record does not exist."""


class InvalidFilter(StorageError):
    """Malformed search arguments, rejected before any query runs."""


class ConnectivityFailure(StorageError):
    """The pool is exhausted or the database cannot be reached."""
