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

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from common.exceptions import ConnectivityFailure, StorageError


def translate_db_error(error: Exception) -> Exception:
    """
    Map an exception raised while talking to the database onto the storage
    error hierarchy. Errors that already belong to it pass through unchanged.
    """
    if isinstance(error, StorageError):
        return error
    if isinstance(error, PoolTimeoutError):
        return ConnectivityFailure(f"No database connection available: {error}")
    if isinstance(error, (OperationalError, InterfaceError)):
        return ConnectivityFailure(f"Database unreachable: {error}")
    if isinstance(error, DBAPIError):
        return StorageError(f"Database error: {error}")
    return error
