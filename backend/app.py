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


import asyncio
import os
import sys

import uvicorn

from common.arguments import arguments
from common.exceptions import StorageInitError
from common.logger import get_logger_config, logger
from db.storage import StorageEngine
from server.startup import create_app


async def check_storage() -> None:
    storage = await StorageEngine.initialize(arguments.db)
    await storage.dispose()


def main() -> None:
    logger.info("Configuring database connection...")
    try:
        # fail fast on an unusable database file before the server binds its port
        asyncio.run(check_storage())
    except StorageInitError as e:
        logger.error(f"Cannot start, database initialization failed: {e}")
        sys.exit(1)

    app = create_app()

    logger.info(f"Starting observation records server with parameters {arguments}")
    try:
        uvicorn.run(
            app,
            host=arguments.host,
            port=arguments.port,
            log_config=get_logger_config(arguments),
            ssl_certfile=arguments.ssl_certfile,
            ssl_keyfile=arguments.ssl_keyfile,
        )
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main")
        os._exit(0)
    except Exception as e:  # pragma: no cover - startup errors
        logger.error(f"Error starting observation records server: {str(e)}")
        logger.exception(e)
        os._exit(1)


if __name__ == "__main__":
    main()
