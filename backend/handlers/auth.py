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


from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from common.exceptions import StorageError
from handlers.common import storage_error_to_http

REALM = "datarecord"

security = HTTPBasic(realm=REALM)


async def authenticated_username(
    request: Request, credentials: HTTPBasicCredentials = Depends(security)
) -> str:
    """
    FastAPI dependency that checks HTTP Basic credentials against the stored
    password hashes and yields the username. Unknown users and wrong passwords
    get the same 401.
    """
    storage = request.app.state.storage
    try:
        authenticated = await storage.authenticate(credentials.username, credentials.password)
    except StorageError as e:
        raise storage_error_to_http(e)

    if not authenticated:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
        )
    return credentials.username
