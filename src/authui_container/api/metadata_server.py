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
import re
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from authui_container.api.http_client import HttpRequestHandler
from authui_container.api.token_manager import METADATA_HEADERS, AccessTokenManager, MetadataTokenRetriever
from authui_container.shared.errors import CloudApiException

logger = logging.getLogger(__name__)

METADATA_SERVER_PROJECT_NUMBER_URL = "http://metadata.google.internal/computeMetadata/v1/project/numeric-project-id"
METADATA_SERVER_PROJECT_ID_URL = "http://metadata.google.internal/computeMetadata/v1/project/project-id"
METADATA_SERVER_ZONE_URL = "http://metadata.google.internal/computeMetadata/v1/instance/zone"
# Used when the zone cannot be parsed out of the metadata server answer.
DEFAULT_ZONE = "US-CENTRAL1"
DEFAULT_ERROR_MESSAGE_PROJECT_ID = "Unable to retrieve the project ID."
DEFAULT_ERROR_MESSAGE_PROJECT_NUMBER = "Unable to retrieve the project number."
DEFAULT_ERROR_MESSAGE_ZONE = "Unable to retrieve the GCP zone."

# Format: projects/327715512941/zones/us-central1-1
_ZONE_RE = re.compile(r"/zones/(.*)-[a-zA-Z1-9]$")


class ApplicationData(ABC):
    """Data about the project and the location the application runs in."""

    @abstractmethod
    async def get_project_id(self) -> str:
        pass

    @abstractmethod
    async def get_project_number(self) -> str:
        pass

    @abstractmethod
    async def get_zone(self) -> str:
        pass


class MetadataServer(AccessTokenManager, ApplicationData):
    """
    Metadata server APIs: service account access tokens, project ID,
    numeric project ID and current GCP zone. Retrieved values are cached.
    """

    def __init__(
        self,
        scopes: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token_retriever = MetadataTokenRetriever(scopes, transport=transport)
        self._project_id_retriever = HttpRequestHandler(
            "GET", METADATA_SERVER_PROJECT_ID_URL, headers=METADATA_HEADERS, transport=transport
        )
        self._project_number_retriever = HttpRequestHandler(
            "GET", METADATA_SERVER_PROJECT_NUMBER_URL, headers=METADATA_HEADERS, transport=transport
        )
        self._zone_retriever = HttpRequestHandler(
            "GET", METADATA_SERVER_ZONE_URL, headers=METADATA_HEADERS, transport=transport
        )
        self._project_id: Optional[str] = None
        self._project_number: Optional[str] = None
        self._zone: Optional[str] = None

    async def get_access_token(self, force_refresh: bool = False) -> str:
        try:
            token = await self.token_retriever.get_access_token(force_refresh)
        except CloudApiException as e:
            logger.error(f"Error encountered while getting Metadata server access token: {e}")
            raise
        return token.access_token

    async def get_project_id(self) -> str:
        if not self._project_id:
            self._project_id = await self._retrieve(self._project_id_retriever, DEFAULT_ERROR_MESSAGE_PROJECT_ID)
        return self._project_id

    async def get_project_number(self) -> str:
        if not self._project_number:
            self._project_number = await self._retrieve(
                self._project_number_retriever, DEFAULT_ERROR_MESSAGE_PROJECT_NUMBER
            )
        return self._project_number

    async def get_zone(self) -> str:
        if not self._zone:
            zone_name = await self._retrieve(self._zone_retriever, DEFAULT_ERROR_MESSAGE_ZONE)
            matches = _ZONE_RE.search(zone_name)
            self._zone = matches.group(1) if matches else DEFAULT_ZONE
        return self._zone

    @staticmethod
    async def _retrieve(retriever: HttpRequestHandler, error_message: str) -> str:
        http_response = await retriever.send(default_message=error_message)
        value = http_response.text.strip()
        if not value:
            raise CloudApiException(500, error_message)
        return value
