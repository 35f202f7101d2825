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


import argparse
import os

DEFAULT_LOG_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logconfig.yaml")

parser = argparse.ArgumentParser(
    description="Start the observation records server with custom arguments."
)
parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to run the server on")
parser.add_argument("--port", type=int, default=8001, help="Port to run the server on")
parser.add_argument(
    "--db", type=str, default="data/db/messages.db", help="Path to the database file"
)
parser.add_argument(
    "--log-level",
    type=str,
    default="INFO",
    choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    help="Set the logging level",
)
parser.add_argument(
    "--log-config",
    type=str,
    default=DEFAULT_LOG_CONFIG,
    help="Path to the logger configuration file",
)
parser.add_argument(
    "--bcrypt-rounds", type=int, default=12, help="bcrypt cost factor for new password hashes"
)
parser.add_argument(
    "--pool-size", type=int, default=5, help="Connections kept open in the database pool"
)
parser.add_argument(
    "--pool-max-overflow",
    type=int,
    default=5,
    help="Extra connections allowed on top of the pool size",
)
parser.add_argument(
    "--pool-timeout",
    type=float,
    default=30.0,
    help="Seconds to wait for a free connection before giving up",
)
parser.add_argument(
    "--pool-recycle",
    type=int,
    default=600,
    help="Maximum lifetime of a pooled connection in seconds",
)
parser.add_argument(
    "--busy-timeout",
    type=float,
    default=30.0,
    help="Seconds SQLite waits on a locked database before failing",
)
parser.add_argument(
    "--weather-url",
    type=str,
    default="http://localhost:4001/wfs",
    help="Base URL of the weather feature service",
)
parser.add_argument(
    "--weather-timeout", type=float, default=5.0, help="Weather lookup timeout in seconds"
)
parser.add_argument(
    "--summarizer-url",
    type=str,
    default="http://localhost:11434/api/generate",
    help="Text generation endpoint used to fill in missing descriptions",
)
parser.add_argument(
    "--summarizer-model",
    type=str,
    default="gpt4all-falcon",
    help="Model name sent to the text generation endpoint",
)
parser.add_argument(
    "--summarizer-timeout",
    type=float,
    default=60.0,
    help="Upper bound in seconds for a single summary generation",
)
parser.add_argument("--ssl-certfile", type=str, default=None, help="TLS certificate file")
parser.add_argument("--ssl-keyfile", type=str, default=None, help="TLS private key file")

# parse_known_args lets test runners and ASGI servers import this module with their own argv
arguments, _unknown = parser.parse_known_args()
