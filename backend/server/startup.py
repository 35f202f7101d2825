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


from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from common.arguments import arguments
from common.logger import logger
from db.storage import StorageEngine
from handlers import register_routers
from services.summarizer import Summarizer
from services.weather import WeatherService


def create_app(
    storage: Optional[StorageEngine] = None,
    weather: Optional[WeatherService] = None,
    summarizer: Optional[Summarizer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    When no storage engine is handed in, the lifespan initializes one from the
    command line arguments and disposes it on shutdown. Handlers reach the
    engine and the outside services through ``app.state``.
    """

    @asynccontextmanager
    async def lifespan(fastapiapp: FastAPI):
        logger.info("FastAPI lifespan startup...")
        owns_storage = fastapiapp.state.storage is None
        if owns_storage:
            fastapiapp.state.storage = await StorageEngine.initialize(arguments.db)
        try:
            yield
        finally:
            logger.info("FastAPI lifespan cleanup...")
            if owns_storage:
                await fastapiapp.state.storage.dispose()
                fastapiapp.state.storage = None

    app = FastAPI(
        lifespan=lifespan,
        title="Observation Records API",
        description="Submit, update and search astronomical observation records",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.storage = storage
    app.state.weather = weather or WeatherService()
    app.state.summarizer = summarizer or Summarizer()

    register_routers(app)
    return app
