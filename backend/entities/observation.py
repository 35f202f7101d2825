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


from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.utils import format_timestamp, utc_now

DEFAULT_UPDATE_REASON = "N/A"


@dataclass(frozen=True)
class WeatherData:
    """
    Point-in-time weather at an observatory. Temperature is in Kelvin and is
    the only mandatory reading.
    """

    temperature: str
    pressure: Optional[str] = None
    humidity: Optional[str] = None
    cloud_cover: Optional[str] = None
    light_volume: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"temperatureInKelvins": self.temperature}
        if self.pressure is not None:
            data["atmospherePressure"] = self.pressure
        if self.cloud_cover is not None:
            data["cloudinessPercentage"] = self.cloud_cover
        if self.humidity is not None:
            data["airHumidityPercentage"] = self.humidity
        if self.light_volume is not None:
            data["backgroundLightVolume"] = self.light_volume
        return data


@dataclass(frozen=True)
class Observatory:
    """Named location of an observation, coordinates kept as decimal strings."""

    name: str
    latitude: str
    longitude: str
    weather: Optional[WeatherData] = None

    def to_dict(self) -> dict:
        return {
            "observatoryName": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class ObservationRecord:
    """
    One submitted observation.

    ``owner`` holds the submitting username before the record is stored and the
    owner's nickname when the record is read back by a search.
    """

    identifier: str
    description: str
    payload: str
    right_ascension: str
    declination: str
    owner: str
    time_received: datetime
    update_time: datetime
    update_reason: str = DEFAULT_UPDATE_REASON
    observatory: Optional[Observatory] = None
    id: Optional[int] = None

    @classmethod
    def create(
        cls,
        identifier: str,
        description: str,
        payload: str,
        right_ascension: str,
        declination: str,
        owner: str,
        observatory: Optional[Observatory] = None,
        update_reason: Optional[str] = None,
        received: Optional[datetime] = None,
    ) -> "ObservationRecord":
        """
        Builds a new, not yet persisted record stamped with the current time.
        """
        for name, value in (
            ("identifier", identifier),
            ("description", description),
            ("payload", payload),
            ("right_ascension", right_ascension),
            ("declination", declination),
            ("owner", owner),
        ):
            if value is None:
                raise ValueError(f"{name} cannot be null.")

        now = received if received is not None else utc_now()
        return cls(
            identifier=identifier,
            description=description,
            payload=payload,
            right_ascension=right_ascension,
            declination=declination,
            owner=owner,
            time_received=now,
            update_time=now,
            update_reason=update_reason or DEFAULT_UPDATE_REASON,
            observatory=observatory,
        )

    @property
    def weather(self) -> Optional[WeatherData]:
        return self.observatory.weather if self.observatory is not None else None

    @property
    def has_observatory(self) -> bool:
        return self.observatory is not None

    @property
    def has_weather(self) -> bool:
        return self.weather is not None

    @property
    def is_modified(self) -> bool:
        return self.update_time != self.time_received

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "recordIdentifier": self.identifier,
            "recordDescription": self.description,
            "recordPayload": self.payload,
            "recordRightAscension": self.right_ascension,
            "recordDeclination": self.declination,
            "recordOwner": self.owner,
            "recordTimeReceived": format_timestamp(self.time_received),
        }
        if self.is_modified:
            data["updateReason"] = self.update_reason
            data["modified"] = format_timestamp(self.update_time)
        if self.observatory is not None:
            data["observatory"] = [self.observatory.to_dict()]
            if self.observatory.weather is not None:
                data["observatoryWeather"] = [self.observatory.weather.to_dict()]
        return data
