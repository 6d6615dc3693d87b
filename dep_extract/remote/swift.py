"""Client for the remote Package.swift to JSON conversion service."""

import asyncio
import json
import ssl
from typing import Any, Dict, Optional

import aiohttp
import certifi
from aiohttp import ClientTimeout

from ..config import DepExtractConfig
from ..core.errors import MalformedInputError, RemoteParsingError
from ..utils.logging import get_logger


class SwiftManifestClient:
    """Async client that converts a Package.swift manifest into JSON.

    The service evaluates the manifest and answers with
    ``{"dependencies": [{"url": ..., "version": {"lowerBound": ..., "upperBound": ...}}]}``.
    """

    def __init__(
        self,
        config: Optional[DepExtractConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ) -> None:
        """Initialize the client.

        Args:
            config: Service host and timeout settings
            session: Optional aiohttp session; one is created per call otherwise
        """
        self.config = config or DepExtractConfig()
        self.timeout = ClientTimeout(total=self.config.remote_timeout)
        self.logger = get_logger("SwiftManifestClient")
        self._session = session
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    @property
    def endpoint(self) -> str:
        return self.config.swift_to_json_endpoint

    async def to_json(self, file_contents: str) -> Dict[str, Any]:
        """Convert a manifest through the remote service.

        Args:
            file_contents: Raw Package.swift content

        Returns:
            Decoded JSON response

        Raises:
            RemoteParsingError: On a non-2xx status or a transport failure
            MalformedInputError: If the response is not the expected JSON object
        """
        if self._session is not None:
            return await self._post(self._session, file_contents)

        connector = aiohttp.TCPConnector(ssl=self._ssl_context)
        async with aiohttp.ClientSession(timeout=self.timeout, connector=connector) as session:
            return await self._post(session, file_contents)

    def convert(self, file_contents: str) -> Dict[str, Any]:
        """Blocking wrapper around :meth:`to_json`."""
        return asyncio.run(self.to_json(file_contents))

    async def _post(self, session: aiohttp.ClientSession, file_contents: str) -> Dict[str, Any]:
        url = self.endpoint
        try:
            async with session.post(url, data=file_contents.encode('utf-8'), timeout=self.timeout) as response:
                if not 200 <= response.status < 300:
                    self.logger.error(f"Swift parser error: {response.status} from {url}")
                    raise RemoteParsingError(
                        f"Http Error {response.status} when contacting: {url}",
                        status_code=response.status,
                        endpoint=url,
                    )
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Could not reach swift parser at {url}: {e}")
            raise RemoteParsingError(f"Could not contact {url}: {e}", endpoint=url) from e

        try:
            data = json.loads(body.decode('utf-8'))
        except ValueError as e:
            # UnicodeDecodeError is a ValueError
            raise MalformedInputError(f"Swift parser returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("dependencies"), list):
            raise MalformedInputError("Swift parser response has no dependencies list", field="dependencies")
        return data
