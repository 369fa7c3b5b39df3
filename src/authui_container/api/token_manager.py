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
import time
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx
from pydantic import ValidationError

from authui_container.api.http_client import HttpRequestHandler
from authui_container.shared.errors import CloudApiException
from authui_container.shared.models import GoogleOAuthAccessToken

logger = logging.getLogger(__name__)

METADATA_SERVER_ACCESS_TOKEN_URL = (
    "http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/token"
)
METADATA_HEADERS = {"Metadata-Flavor": "Google"}
DEFAULT_OAUTH_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
DEFAULT_ERROR_MESSAGE_ACCESS_TOKEN = "Unable to retrieve an OAuth access token."
# Seconds before expiration at which a cached token is refreshed.
OFFSET = 30


class AccessTokenManager(ABC):
    """Base class of the providers of OAuth access tokens used to call Google APIs."""

    @abstractmethod
    async def get_access_token(self, force_refresh: bool = False) -> str:
        """Returns an OAuth access token."""
        pass


class StaticAccessTokenManager(AccessTokenManager):
    """Always returns the same token, e.g. the admin user token of the current request."""

    def __init__(self, access_token: str):
        self.access_token = access_token

    async def get_access_token(self, force_refresh: bool = False) -> str:
        return self.access_token


class MetadataTokenRetriever:
    """
    Retrieves OAuth access tokens of the default service account from the metadata server.
    A token is cached until OFFSET seconds before it expires.

    This is not an AccessTokenManager: get_access_token returns the whole
    GoogleOAuthAccessToken. MetadataServer wraps it and exposes the bare token string.
    """

    def __init__(
        self,
        scopes: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        scopes = scopes or [DEFAULT_OAUTH_SCOPE]
        self._token_retriever = HttpRequestHandler(
            "GET",
            f"{METADATA_SERVER_ACCESS_TOKEN_URL}?scopes={','.join(scopes)}",
            headers=METADATA_HEADERS,
            transport=transport,
        )
        self._access_token: Optional[str] = None
        self._expiration_time: float = 0

    async def get_access_token(self, force_refresh: bool = False) -> GoogleOAuthAccessToken:
        current_time = time.time()
        if not force_refresh and self._access_token and current_time + OFFSET <= self._expiration_time:
            return GoogleOAuthAccessToken(
                access_token=self._access_token,
                expires_in=self._expiration_time - current_time,
            )

        http_response = await self._token_retriever.send(default_message=DEFAULT_ERROR_MESSAGE_ACCESS_TOKEN)
        try:
            token = GoogleOAuthAccessToken.model_validate(http_response.body)
        except ValidationError as e:
            logger.error(f"Unexpected metadata server token response: {e}")
            raise CloudApiException(500, DEFAULT_ERROR_MESSAGE_ACCESS_TOKEN) from e

        self._access_token = token.access_token
        self._expiration_time = current_time + token.expires_in
        logger.debug(f"Access token refreshed, expires in {token.expires_in} seconds.")
        return token

    def reset(self) -> None:
        """Drops the cached access token."""
        self._access_token = None
