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
from typing import Any, Dict, List, Optional

import httpx

from authui_container.api.http_client import AuthenticatedRequestHandler
from authui_container.api.metadata_server import ApplicationData
from authui_container.api.token_manager import AccessTokenManager
from authui_container.shared.errors import CloudApiException

logger = logging.getLogger(__name__)

LIST_COMPUTE_BACKEND_SERVICES_URL = (
    "https://compute.googleapis.com/compute/v1/projects/{projectId}/global/backendServices"
)
GET_IAP_SETTINGS_URL = "https://iap.googleapis.com/v1/projects/{projectNumber}/iap_web/{id}:iapSettings"
DEFAULT_ERROR_COMPUTE_BACKEND_SERVICE_IDS_LIST = "Unable to list compute backend service IDs."
DEFAULT_ERROR_IAP_SETTINGS = "Unable to get IAP settings for requested resource."
# Answer of the Compute API when it is not enabled on the project.
COMPUTE_API_NOT_ENABLED = "Access Not Configured."

# https://cloud.google.com/iap/docs/reference/rest/v1/IapSettings
IapSettings = Dict[str, Any]


def get_tenant_ids(iap_settings: IapSettings) -> List[str]:
    """Returns the GCIP tenant IDs configured on an IAP resource."""
    access_settings = iap_settings.get("accessSettings") or {}
    gcip_settings = access_settings.get("gcipSettings") or {}
    return list(gcip_settings.get("tenantIds") or [])


class IapSettingsHandler:
    """Lists the IAP settings of the App Engine app and the Compute backend services of the project."""

    def __init__(
        self,
        app: ApplicationData,
        access_token_manager: AccessTokenManager,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app = app
        self._backend_services_handler = AuthenticatedRequestHandler(
            "GET", LIST_COMPUTE_BACKEND_SERVICES_URL, access_token_manager, transport=transport
        )
        self._iap_settings_handler = AuthenticatedRequestHandler(
            "GET", GET_IAP_SETTINGS_URL, access_token_manager, transport=transport
        )

    async def get_iap_settings(self, resource_id: str) -> IapSettings:
        """
        Args:
            resource_id: The IAP resource, either appengine-APP_ID or
                compute/services/BACKEND_SERVICE_ID.
        """
        project_number = await self.app.get_project_number()
        http_response = await self._iap_settings_handler.send(
            url_params={"projectNumber": project_number, "id": resource_id},
            default_message=DEFAULT_ERROR_IAP_SETTINGS,
        )
        return http_response.body if isinstance(http_response.body, dict) else {}

    async def list_iap_settings(self) -> List[IapSettings]:
        """Returns the IAP settings of every resource that answers, the others are skipped."""
        project_id = await self.app.get_project_id()
        resource_ids = [f"appengine-{project_id}"]
        resource_ids.extend(
            f"compute/services/{service_id}" for service_id in await self._get_compute_backend_service_ids()
        )

        settings = []
        for resource_id in resource_ids:
            try:
                settings.append(await self.get_iap_settings(resource_id))
            except CloudApiException as e:
                logger.debug(f"No IAP settings for {resource_id}: {e}")
        return settings

    async def _get_compute_backend_service_ids(self) -> List[str]:
        project_id = await self.app.get_project_id()
        try:
            http_response = await self._backend_services_handler.send(
                url_params={"projectId": project_id},
                default_message=DEFAULT_ERROR_COMPUTE_BACKEND_SERVICE_IDS_LIST,
            )
        except CloudApiException as e:
            # Compute Engine usage is not required.
            if COMPUTE_API_NOT_ENABLED in e.detail:
                logger.info("Compute API not enabled, no backend services to list.")
                return []
            raise
        body = http_response.body if isinstance(http_response.body, dict) else {}
        items = body.get("items") or []
        return [str(item["id"]) for item in items if isinstance(item, dict) and item.get("id")]
