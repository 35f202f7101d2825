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


from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String, Text, TypeDecorator
from sqlalchemy.orm import declarative_base

from common.utils import datetime_to_millis, millis_to_datetime

# Creates a base class for declarative models using SQLAlchemy.
Base = declarative_base()


class EpochMillis(TypeDecorator):
    """
    Stores timezone-aware datetimes as integer milliseconds since the epoch
    and hands back aware UTC datetimes when reading.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return datetime_to_millis(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return millis_to_datetime(value)


class Users(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    nickname = Column(String, nullable=False)


class Weather(Base):
    __tablename__ = "weather"
    id = Column(Integer, primary_key=True, autoincrement=True)
    temperature = Column(String, nullable=False)
    pressure = Column(String, nullable=True)
    humidity = Column(String, nullable=True)
    cloud_cover = Column(String, nullable=True)
    light_volume = Column(String, nullable=True)


class Observatories(Base):
    __tablename__ = "observatories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    latitude = Column(String, nullable=False)
    longitude = Column(String, nullable=False)
    weather_id = Column(Integer, ForeignKey("weather.id"), nullable=True)


class Records(Base):
    __tablename__ = "records"
    id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    payload = Column(Text, nullable=False)
    right_ascension = Column(String, nullable=False)
    declination = Column(String, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    time_received = Column(EpochMillis, nullable=False, index=True)
    update_reason = Column(String, nullable=False, default="N/A")
    modified = Column(EpochMillis, nullable=False)
    observatory_id = Column(Integer, ForeignKey("observatories.id"), nullable=True)
