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

from datetime import timedelta

import pytest

from common.utils import utc_now
from entities import ObservationRecord, Observatory, User, WeatherData


def test_user_nickname_defaults_to_username():
    assert User("alice", "pw", "alice@example.com").nickname == "alice"
    assert User("alice", "pw", "alice@example.com", nickname="Al").nickname == "Al"


def test_user_repr_hides_password():
    assert "pw-secret" not in repr(User("alice", "pw-secret", "alice@example.com"))


def test_create_rejects_null_fields():
    with pytest.raises(ValueError, match="payload"):
        ObservationRecord.create("M31", "desc", None, "00h", "+41d", "alice")


def test_new_record_is_not_modified():
    record = ObservationRecord.create("M31", "desc", "payload", "00h", "+41d", "alice")

    assert record.time_received == record.update_time
    assert record.update_reason == "N/A"
    assert record.is_modified is False
    assert record.has_observatory is False
    assert record.has_weather is False


def test_record_to_dict_minimal():
    received = utc_now()
    record = ObservationRecord.create(
        "M31", "desc", "payload", "00h", "+41d", "Al", received=received
    )

    data = record.to_dict()

    assert data["recordIdentifier"] == "M31"
    assert data["recordOwner"] == "Al"
    assert data["recordTimeReceived"].endswith("Z")
    assert "modified" not in data
    assert "updateReason" not in data
    assert "observatory" not in data
    assert "observatoryWeather" not in data


def test_record_to_dict_modified_and_nested():
    received = utc_now() - timedelta(minutes=10)
    weather = WeatherData(temperature="270.15", humidity="75.0")
    observatory = Observatory("Tuorla", "60.4167", "22.4433", weather=weather)
    record = ObservationRecord(
        identifier="M31",
        description="desc",
        payload="payload",
        right_ascension="00h",
        declination="+41d",
        owner="Al",
        time_received=received,
        update_time=received + timedelta(minutes=5),
        update_reason="Refined coordinates",
        observatory=observatory,
        id=7,
    )

    data = record.to_dict()

    assert data["id"] == 7
    assert data["updateReason"] == "Refined coordinates"
    assert "modified" in data
    assert data["observatory"] == [
        {"observatoryName": "Tuorla", "latitude": "60.4167", "longitude": "22.4433"}
    ]
    assert data["observatoryWeather"] == [
        {"temperatureInKelvins": "270.15", "airHumidityPercentage": "75.0"}
    ]
    assert record.weather is weather


def test_weather_to_dict_includes_present_readings_only():
    weather = WeatherData(
        temperature="280.00",
        pressure="1000.1",
        humidity="50.0",
        cloud_cover="12.5",
        light_volume="3.0",
    )

    assert weather.to_dict() == {
        "temperatureInKelvins": "280.00",
        "atmospherePressure": "1000.1",
        "cloudinessPercentage": "12.5",
        "airHumidityPercentage": "50.0",
        "backgroundLightVolume": "3.0",
    }
