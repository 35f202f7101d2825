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


from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class User:
    """
    A registered account. The password is only ever held in clear text on the
    way in; storage keeps the bcrypt hash.
    """

    username: str
    password: str = field(repr=False)
    email: str
    nickname: Optional[str] = None

    def __post_init__(self):
        if not self.nickname:
            object.__setattr__(self, "nickname", self.username)
