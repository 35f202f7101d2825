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


import re
from typing import List, Optional

import httpx

from common.arguments import arguments
from common.logger import logger
from entities import WeatherData

WEATHER_PARAMETERS = "Temperature,Pressure,Humidity,TotalCloudCover,RadiationGlobalAccumulation"
PARAMETER_VALUE = re.compile(r"<BsWfs:ParameterValue>(.*?)</BsWfs:ParameterValue>", re.DOTALL)


def celsius_to_kelvin(value: str) -> str:
    return f"{float(value) + 273.15:.2f}"


def parse_parameter_values(document: str) -> List[Optional[str]]:
    """
    Pull the first five parameter values out of a WFS simple-feature response,
    in the order they were requested. Missing or NaN values come back as None.
    """
    values: List[Optional[str]] = [None] * 5
    for index, match in enumerate(PARAMETER_VALUE.finditer(document)):
        if index > 4:
            break
        value = match.group(1).strip()
        values[index] = None if not value or value.lower() == "nan" else value
    return values


class WeatherService:
    """
    Looks up current weather for a latitude/longitude pair.

    ``get_weather`` never raises: a failed lookup and a lookup without data
    both return None, and the caller stores the record without weather.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or arguments.weather_url
        self.timeout = timeout if timeout is not None else arguments.weather_timeout
        self.transport = transport

    async def get_weather(self, latitude: str, longitude: str) -> Optional[WeatherData]:
        params = {"latlon": f"{latitude},{longitude}", "parameters": WEATHER_PARAMETERS}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.base_url, params=params)
            if response.status_code != 200:
                logger.warning(f"Weather service replied with status {response.status_code}")
                return None

            temperature, pressure, humidity, cloud_cover, light_volume = parse_parameter_values(
                response.text
            )
            if temperature is None:
                logger.warning(f"No temperature for {latitude},{longitude}")
                return None

            return WeatherData(
                temperature=celsius_to_kelvin(temperature),
                pressure=pressure,
                humidity=humidity,
                cloud_cover=cloud_cover,
                light_volume=light_volume,
            )

        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Weather service error: {e}")
            return None
