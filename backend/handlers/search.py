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


from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from common.exceptions import StorageError
from crud.searchquery import SearchQuery, parse_search_args
from handlers.auth import authenticated_username
from handlers.common import storage_error_to_http

router = APIRouter()


@router.get("/search")
async def search_records(request: Request, username: str = Depends(authenticated_username)):
    """
    Search records by nickname, identification, before and/or after. The raw
    query string is parsed by hand so a '+' in a timezone offset is kept.
    """
    try:
        search_query = SearchQuery(parse_search_args(request.url.query))
        records = await request.app.state.storage.search(search_query)
    except StorageError as e:
        raise storage_error_to_http(e)
    return JSONResponse([record.to_dict() for record in records])
