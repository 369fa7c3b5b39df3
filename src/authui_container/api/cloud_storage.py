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

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from authui_container.api.http_client import AuthenticatedRequestHandler
from authui_container.api.metadata_server import ApplicationData
from authui_container.api.token_manager import AccessTokenManager

logger = logging.getLogger(__name__)

GCS_BUCKETS_URL = "https://storage.googleapis.com/storage/v1/b?project={projectId}"
GCS_READ_FILE_URL = "https://storage.googleapis.com/storage/v1/b/{bucketName}/o/{fileName}?alt=media"
GCS_WRITE_FILE_URL = (
    "https://storage.googleapis.com/upload/storage/v1/b/{bucketName}/o?uploadType=media&name={fileName}"
)
DEFAULT_ERROR_MESSAGE_CREATE_BUCKET = "Unable to create GCS bucket."
DEFAULT_ERROR_MESSAGE_LIST_BUCKETS = "Unable to list GCS buckets."
DEFAULT_ERROR_MESSAGE_READ_FILE = "Unable to read GCS file."
DEFAULT_ERROR_MESSAGE_WRITE_FILE = "Unable to write to GCS file."


class CloudStorageHandler:
    """
    Creates and lists GCS buckets, reads and writes JSON files in them.
    OAuth scope required: https://www.googleapis.com/auth/devstorage.read_write
    """

    def __init__(
        self,
        app: ApplicationData,
        access_token_manager: AccessTokenManager,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app = app
        self._create_bucket_handler = AuthenticatedRequestHandler(
            "POST", GCS_BUCKETS_URL, access_token_manager, transport=transport
        )
        self._list_buckets_handler = AuthenticatedRequestHandler(
            "GET", GCS_BUCKETS_URL, access_token_manager, transport=transport
        )
        self._read_file_handler = AuthenticatedRequestHandler(
            "GET", GCS_READ_FILE_URL, access_token_manager, transport=transport
        )
        self._write_file_handler = AuthenticatedRequestHandler(
            "POST", GCS_WRITE_FILE_URL, access_token_manager, transport=transport
        )

    async def create_bucket(self, bucket_name: str) -> None:
        project_id = await self.app.get_project_id()
        zone = await self.app.get_zone()
        logger.info(f"Creating GCS bucket {bucket_name} in {zone.upper()}")
        await self._create_bucket_handler.send(
            url_params={"projectId": project_id},
            body={"name": bucket_name, "location": zone.upper(), "storageClass": "STANDARD"},
            default_message=DEFAULT_ERROR_MESSAGE_CREATE_BUCKET,
        )

    async def list_buckets(self) -> List[Dict[str, Any]]:
        project_id = await self.app.get_project_id()
        http_response = await self._list_buckets_handler.send(
            url_params={"projectId": project_id},
            default_message=DEFAULT_ERROR_MESSAGE_LIST_BUCKETS,
        )
        body = http_response.body if isinstance(http_response.body, dict) else {}
        return body.get("items", [])

    async def read_file(self, bucket_name: str, file_name: str) -> Any:
        """Returns the decoded JSON content of the file."""
        http_response = await self._read_file_handler.send(
            url_params={"bucketName": bucket_name, "fileName": file_name},
            default_message=DEFAULT_ERROR_MESSAGE_READ_FILE,
        )
        return json.loads(http_response.text)

    async def write_file(self, bucket_name: str, file_name: str, content: Any) -> None:
        await self._write_file_handler.send(
            url_params={"bucketName": bucket_name, "fileName": file_name},
            body=content,
            default_message=DEFAULT_ERROR_MESSAGE_WRITE_FILE,
        )
        logger.info(f"{file_name} written to GCS bucket {bucket_name}")
