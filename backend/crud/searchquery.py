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
Search statement builder for observation records.

The grammar is closed: four filter keys, each mapped to one comparison on the
joined records/users tables. Conditions are added in the fixed order of
``FILTERS`` and combined with AND. Values are bound parameters of the clause
they belong to, so binding order always follows clause order.
"""

from typing import Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import unquote

from sqlalchemy import Select, select
from sqlalchemy.sql.elements import ColumnElement

from common.exceptions import InvalidFilter
from common.utils import parse_timestamp
from db.models import Observatories, Records, Users, Weather


def _text_value(key: str, value: str) -> str:
    if value is None:
        raise InvalidFilter(f"Search argument {key} has no value.")
    return value


def _time_value(key: str, value: str):
    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidFilter(
            f"Search argument {key} must look like 2025-02-25T21:14:05.120+0200, got {value!r}."
        )
    return parsed


# key -> (value parser, clause factory), in the order the clauses are rendered
FILTERS: Dict[str, Tuple[Callable, Callable[[object], ColumnElement]]] = {
    "nickname": (_text_value, lambda value: Users.nickname == value),
    "identification": (_text_value, lambda value: Records.identifier == value),
    "before": (_time_value, lambda value: Records.time_received < value),
    "after": (_time_value, lambda value: Records.time_received > value),
}

FILTER_KEYS = tuple(FILTERS)


def base_query() -> Select:
    """
    Every record joined with its owner's nickname and, when present, its
    observatory and that observatory's weather.
    """
    return (
        select(
            Records.id,
            Records.identifier,
            Records.description,
            Records.payload,
            Records.right_ascension,
            Records.declination,
            Records.time_received,
            Records.update_reason,
            Records.modified,
            Users.nickname.label("owner"),
            Observatories.name.label("observatory_name"),
            Observatories.latitude,
            Observatories.longitude,
            Weather.temperature,
            Weather.pressure,
            Weather.humidity,
            Weather.cloud_cover,
            Weather.light_volume,
        )
        .select_from(Records)
        .join(Users, Records.owner_id == Users.id)
        .outerjoin(Observatories, Records.observatory_id == Observatories.id)
        .outerjoin(Weather, Observatories.weather_id == Weather.id)
    )


class SearchQuery:
    """
    A validated set of search filters and the SELECT statement they produce.

    Raises InvalidFilter for unknown keys and for before/after values that do
    not follow the timestamp format.
    """

    def __init__(self, search_args: Optional[Mapping[str, str]] = None):
        self.filters: Dict[str, object] = {}
        for key, value in (search_args or {}).items():
            if key not in FILTERS:
                raise InvalidFilter(f"Invalid search argument {key!r}.")
            parser, _ = FILTERS[key]
            self.filters[key] = parser(key, value)

    @property
    def is_empty(self) -> bool:
        return not self.filters

    def conditions(self):
        return [
            clause_factory(self.filters[key])
            for key, (_, clause_factory) in FILTERS.items()
            if key in self.filters
        ]

    def statement(self) -> Select:
        stmt = base_query()
        conditions = self.conditions()
        if conditions:
            stmt = stmt.where(*conditions)
        return stmt.order_by(Records.id.asc())


def parse_search_args(query: Optional[str]) -> Dict[str, str]:
    """
    Split a raw URL query string into search arguments.

    Values are percent-decoded but a literal '+' is kept, so timezone offsets
    such as +0200 survive. Empty pairs are skipped, a pair without '=' and
    any unknown key raise InvalidFilter.
    """
    if not query:
        raise InvalidFilter("Search query cannot be empty!")

    search_args: Dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        if not sep:
            raise InvalidFilter("Empty search argument!")
        key = unquote(key)
        if key not in FILTERS:
            raise InvalidFilter(f"Invalid search argument {key!r}.")
        search_args[key] = unquote(value)
    return search_args
