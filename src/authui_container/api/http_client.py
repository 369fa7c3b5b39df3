#    Copyright 2025 FAO
#
#    Licensed under the Apache License, Version 2.0 (the "License");
#    you may not use this file except in compliance with the License.
#    You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS,
#    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#    See the License for the specific language governing permissions and
#    limitations under the License.
#
#    Author: Carlo Cancellieri (ccancellieri@gmail.com)
#    Company: FAO, Viale delle Terme di Caracalla, 00100 Rome, Italy
#    Contact: copyright@fao.org - http://fao.org/contact-us/terms/en/

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import httpx

from authui_container.shared.errors import CloudApiException
from authui_container.shared.models import HttpResponse
from authui_container.shared.utils import format_string

if TYPE_CHECKING:
    from authui_container.api.token_manager import AccessTokenManager

logger = logging.getLogger(__name__)

# Used when a non-200 answer carries no usable error message.
DEFAULT_ERROR_MESSAGE = "Unexpected error occurred."
TIMEOUT_DURATION = 10.0


class HttpRequestHandler:
    """
    Sends server side HTTP requests built from a base configuration.

    The URL may contain '{name}' placeholders, filled in on each call. Any answer
    other than a 200 is raised as a CloudApiException.
    """

    def __init__(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = TIMEOUT_DURATION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            method: The HTTP method, e.g. 'GET' or 'POST'.
            url: The endpoint URL, possibly with '{name}' placeholders.
            headers: Headers sent with every request.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, mostly useful to mock the remote APIs.
        """
        self.method = method.upper()
        self.url = url
        self.headers: Dict[str, str] = dict(headers or {})
        self.timeout = timeout
        self.transport = transport

    async def send(
        self,
        url_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        default_message: str = DEFAULT_ERROR_MESSAGE,
    ) -> HttpResponse:
        """
        Sends the request. For GET and HEAD requests the body must be a dict and is
        sent as query string, for the other methods it is sent as JSON.
        """
        url = format_string(self.url, url_params)
        request_headers = dict(self.headers)
        request_headers.update(headers or {})
        params = None
        json_body = None
        if body is not None:
            if self.method in ("GET", "HEAD"):
                if not isinstance(body, dict):
                    raise ValueError("Invalid GET request data")
                params = body
            else:
                json_body = body

        logger.debug(f"Sending {self.method} request to {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    self.method, url, headers=request_headers, params=params, json=json_body
                )
        except httpx.HTTPError as e:
            logger.error(f"{self.method} request to {url} failed: {e}")
            raise CloudApiException(500, str(e) or default_message) from e

        try:
            response_body = response.json()
        except ValueError:
            response_body = response.text
        http_response = HttpResponse(status_code=response.status_code, body=response_body, text=response.text)

        if response.status_code != 200:
            logger.debug(f"{self.method} request to {url} answered with {response.status_code}")
            raise self._get_error(http_response, default_message)
        return http_response

    @staticmethod
    def _get_error(http_response: HttpResponse, default_message: str) -> CloudApiException:
        body = http_response.body
        error = body.get("error") if isinstance(body, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        if message:
            detail = str(message)
        elif isinstance(body, str) and body:
            # GCS answers with plain text, e.g. 'No such object: <bucket>/config.json'.
            detail = body
        else:
            detail = default_message
        cloud_compliant = bool(message) and bool(error.get("code"))
        return CloudApiException(
            http_response.status_code,
            detail,
            raw_response=body,
            cloud_compliant=cloud_compliant,
        )


class AuthenticatedRequestHandler(HttpRequestHandler):
    """Same as HttpRequestHandler, injecting an OAuth access token in every request."""

    def __init__(
        self,
        method: str,
        url: str,
        access_token_manager: "AccessTokenManager",
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = TIMEOUT_DURATION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(method, url, headers=headers, timeout=timeout, transport=transport)
        self.access_token_manager = access_token_manager

    async def send(
        self,
        url_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        default_message: str = DEFAULT_ERROR_MESSAGE,
    ) -> HttpResponse:
        access_token = await self.access_token_manager.get_access_token()
        authenticated_headers = dict(headers or {})
        authenticated_headers["Authorization"] = f"Bearer {access_token}"
        return await super().send(
            url_params=url_params,
            headers=authenticated_headers,
            body=body,
            default_message=default_message,
        )
