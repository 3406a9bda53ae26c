"""
HTTP client for collaborator services.

Handles request execution, retry logic, API-key headers, and response processing.
HttpServiceClient gives each collaborator client one lazily opened session.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Union

import aiohttp
from aiohttp import ClientResponse, ClientSession

from .models.config import ConnectionConfig, RetryConfig

logger = logging.getLogger(__name__)


class HttpClient:
    """JSON-over-HTTP client shared by the router, perps and assistant clients."""

    def __init__(
        self,
        config: ConnectionConfig,
        retry_config: Optional[RetryConfig] = None,
    ):
        """Initialize HTTP client with configuration."""
        self._config = config
        self._retry_config = retry_config or RetryConfig()

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    async def request(
        self,
        session: ClientSession,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Union[Dict[str, Any], list]:
        """Execute HTTP request with retry logic and API-key header."""
        url = f"{self._config.normalized_url}{endpoint}"

        request_headers = self._prepare_headers(headers)
        request_params = params or {}
        request_data = data or {}

        return await self._execute_with_retry(
            session, method, url, request_params, request_data, request_headers
        )

    def _prepare_headers(self, custom_headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        """Prepare request headers."""
        headers = {}
        if self._config.api_key:
            headers[self._config.api_key_header] = self._config.api_key
        if custom_headers:
            headers.update(custom_headers)
        return headers

    async def _execute_with_retry(
        self,
        session: ClientSession,
        method: str,
        url: str,
        params: Dict[str, Any],
        data: Dict[str, Any],
        headers: Dict[str, str],
    ) -> Union[Dict[str, Any], list]:
        """Execute request with retry logic."""
        last_exception = None

        for attempt in range(self._retry_config.max_retries + 1):
            try:
                request_kwargs = {
                    "method": method,
                    "url": url,
                    "headers": headers,
                }
                if params:
                    request_kwargs["params"] = sorted(
                        (k, str(v)) for k, v in params.items()
                    )
                if data:
                    request_kwargs["json"] = data

                async with session.request(**request_kwargs) as response:
                    response_data = await self._process_response(response)

                    if response.status < 400:
                        return response_data

                    # Don't retry on client errors (4xx)
                    if 400 <= response.status < 500:
                        if response.status in (401, 403):
                            raise HttpClientClientError(
                                f"Authentication failed: Please check the configured API key. "
                                f"Server response: {response_data}",
                                status_code=response.status,
                                response_data=response_data,
                            )

                        raise HttpClientClientError(
                            f"Client error {response.status}: {response_data}",
                            status_code=response.status,
                            response_data=response_data,
                        )

                    if response.status in self._retry_config.retry_on_status:
                        raise HttpServerError(
                            f"Server error {response.status}: {response_data}",
                            status_code=response.status,
                            response_data=response_data,
                        )

                    raise HttpClientClientError(
                        f"HTTP {response.status}: {response_data}",
                        status_code=response.status,
                        response_data=response_data,
                    )

            except (HttpServerError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e

                if attempt == self._retry_config.max_retries:
                    break

                delay = self._retry_config.retry_delay * (
                    self._retry_config.backoff_factor ** attempt
                )
                logger.debug(
                    f"{method} {url} failed ({e}); retry {attempt + 1}/"
                    f"{self._retry_config.max_retries} in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

        raise last_exception or HttpClientError("Request failed after all retries")

    async def _process_response(self, response: ClientResponse) -> Union[Dict[str, Any], list]:
        """Process HTTP response and return data."""
        response_text = await response.text()

        if not response_text:
            return {"status": response.status, "data": None}

        try:
            return json.loads(response_text)
        except json.JSONDecodeError as e:
            # Error pages from proxies are often HTML; let the status decide
            if response.status >= 400:
                return {"status": response.status, "body": response_text[:200]}
            raise HttpClientError(
                f"Invalid JSON response (Status {response.status}): {response_text[:200]}",
                status_code=response.status,
            ) from e


class HttpClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class HttpServerError(HttpClientError):
    """Exception for server errors (5xx)."""
    pass


class HttpClientClientError(HttpClientError):
    """Exception for client errors (4xx)."""
    pass


class HttpServiceClient:
    """
    Base for collaborator clients that talk JSON over HTTP.

    Owns one lazily created aiohttp session and one HTTP client; subclasses
    call `_request`.
    """

    USER_AGENT = "dex-client/0.1"

    def __init__(
        self,
        config: ConnectionConfig,
        retry_config: Optional[RetryConfig] = None,
    ):
        self._config = config
        self._session: Optional[ClientSession] = None
        self._http_client = HttpClient(config, retry_config)

    async def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit_per_host=10, ttl_dns_cache=300),
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
                headers={"User-Agent": self.USER_AGENT, "Accept": "application/json"},
            )
        return self._session

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Union[Dict[str, Any], list]:
        session = await self._get_session()
        return await self._http_client.request(session, method, endpoint, params=params, data=data)

    async def close(self) -> None:
        """Close the underlying session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
