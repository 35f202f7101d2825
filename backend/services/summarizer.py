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


from typing import Optional

import httpx

from common.arguments import arguments
from common.logger import logger

UNAVAILABLE = "N/A"
PROMPT = 'Give very short description about the following text "{text}"'
# the model struggles with long inputs
MAX_INPUT_CHARS = 400


class Summarizer:
    """
    Produces a short description for a record payload through a local text
    generation endpoint (Ollama-style ``/api/generate``).

    Returns UNAVAILABLE instead of raising, so a missing summary never blocks
    storing the record.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or arguments.summarizer_url
        self.model = model or arguments.summarizer_model
        self.timeout = timeout if timeout is not None else arguments.summarizer_timeout
        self.transport = transport

    def build_prompt(self, text: str) -> str:
        return PROMPT.format(text=text[:MAX_INPUT_CHARS])

    async def summarize(self, text: str) -> str:
        if not text:
            return UNAVAILABLE

        body = {"model": self.model, "prompt": self.build_prompt(text), "stream": False}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=body)
            if response.status_code != 200:
                logger.warning(f"Summarizer replied with status {response.status_code}")
                return UNAVAILABLE

            summary = (response.json().get("response") or "").strip()
            return summary or UNAVAILABLE

        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"Error on generating summary: {e}")
            return UNAVAILABLE
