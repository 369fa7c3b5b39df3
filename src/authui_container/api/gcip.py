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
from authui_container.shared.models import GcipConfig, SignInOption, TenantUiConfig

logger = logging.getLogger(__name__)

GET_GCIP_CONFIG_URL = "https://identitytoolkit.googleapis.com/admin/v2/projects/{projectId}/config"
GET_TENANT_CONFIG_URL = "https://identitytoolkit.googleapis.com/v2/projects/{projectId}/tenants/{tenantId}"
GET_DEFAULT_IDPS_URL = (
    "https://identitytoolkit.googleapis.com/v2/{resourceId}/defaultSupportedIdpConfigs?pageSize={pageSize}"
)
GET_SAML_IDPS_URL = "https://identitytoolkit.googleapis.com/v2/{resourceId}/inboundSamlConfigs?pageSize={pageSize}"
GET_OIDC_IDPS_URL = "https://identitytoolkit.googleapis.com/v2/{resourceId}/oauthIdpConfigs?pageSize={pageSize}"
PAGE_SIZE = 100

DEFAULT_ERROR_GET_GCIP_CONFIG = "Unable to retrieve Identity Platform config."
DEFAULT_ERROR_GET_TENANT_CONFIG = "Unable to retrieve tenant config."
DEFAULT_ERROR_GET_DEFAULT_IDPS_CONFIG = "Unable to retrieve default IdPs config."
DEFAULT_ERROR_GET_SAML_IDPS_CONFIG = "Unable to retrieve SAML IdPs config."
DEFAULT_ERROR_GET_OIDC_IDPS_CONFIG = "Unable to retrieve OIDC IdPs config."


def _is_project_level(tenant_id: str) -> bool:
    return tenant_id.startswith("_")


def _as_dict(body: Any) -> Dict[str, Any]:
    return body if isinstance(body, dict) else {}


class GcipHandler:
    """
    Identity Platform API calls. Builds the web config of the sign-in page and
    lists the enabled IdPs of a tenant as sign-in options.
    """

    def __init__(
        self,
        app: ApplicationData,
        access_token_manager: AccessTokenManager,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app = app
        self._gcip_config_handler = AuthenticatedRequestHandler(
            "GET", GET_GCIP_CONFIG_URL, access_token_manager, transport=transport
        )
        self._tenant_config_handler = AuthenticatedRequestHandler(
            "GET", GET_TENANT_CONFIG_URL, access_token_manager, transport=transport
        )
        self._default_idps_handler = AuthenticatedRequestHandler(
            "GET", GET_DEFAULT_IDPS_URL, access_token_manager, transport=transport
        )
        self._saml_idps_handler = AuthenticatedRequestHandler(
            "GET", GET_SAML_IDPS_URL, access_token_manager, transport=transport
        )
        self._oidc_idps_handler = AuthenticatedRequestHandler(
            "GET", GET_OIDC_IDPS_URL, access_token_manager, transport=transport
        )

    async def get_gcip_config(self) -> GcipConfig:
        project_id = await self.app.get_project_id()
        http_response = await self._gcip_config_handler.send(
            url_params={"projectId": project_id},
            default_message=DEFAULT_ERROR_GET_GCIP_CONFIG,
        )
        client = _as_dict(_as_dict(http_response.body).get("client"))
        if not client.get("apiKey") or not client.get("firebaseSubdomain"):
            raise CloudApiException(500, DEFAULT_ERROR_GET_GCIP_CONFIG)
        return GcipConfig(
            api_key=client["apiKey"],
            auth_domain=f"{client['firebaseSubdomain']}.firebaseapp.com",
        )

    async def get_tenant_ui_config(self, tenant_id: str) -> TenantUiConfig:
        """
        Returns the sign-in options enabled on the tenant: email/password (and phone at
        project level) first, then the default, SAML and OIDC IdPs.
        """
        tenant_ui_config = await self._get_password_and_phone_config(tenant_id)
        resource_id = await self._get_resource_id(tenant_id)
        tenant_ui_config.sign_in_options.extend(
            await self._list_enabled_idps(
                self._default_idps_handler,
                resource_id,
                "defaultSupportedIdpConfigs",
                DEFAULT_ERROR_GET_DEFAULT_IDPS_CONFIG,
                with_display_name=False,
            )
        )
        tenant_ui_config.sign_in_options.extend(
            await self._list_enabled_idps(
                self._saml_idps_handler, resource_id, "inboundSamlConfigs", DEFAULT_ERROR_GET_SAML_IDPS_CONFIG
            )
        )
        tenant_ui_config.sign_in_options.extend(
            await self._list_enabled_idps(
                self._oidc_idps_handler, resource_id, "oauthIdpConfigs", DEFAULT_ERROR_GET_OIDC_IDPS_CONFIG
            )
        )
        logger.debug(f"Tenant {tenant_id} has {len(tenant_ui_config.sign_in_options)} sign-in options.")
        return tenant_ui_config

    async def _get_resource_id(self, tenant_id: str) -> str:
        project_id = await self.app.get_project_id()
        if _is_project_level(tenant_id):
            return f"projects/{project_id}"
        return f"projects/{project_id}/tenants/{tenant_id}"

    async def _get_password_and_phone_config(self, tenant_id: str) -> TenantUiConfig:
        project_id = await self.app.get_project_id()
        sign_in_options: List[SignInOption] = []

        if _is_project_level(tenant_id):
            http_response = await self._gcip_config_handler.send(
                url_params={"projectId": project_id},
                default_message=DEFAULT_ERROR_GET_GCIP_CONFIG,
            )
            sign_in = _as_dict(_as_dict(http_response.body).get("signIn"))
            if _as_dict(sign_in.get("email")).get("enabled"):
                sign_in_options.append(SignInOption(provider="password"))
            if _as_dict(sign_in.get("phoneNumber")).get("enabled"):
                sign_in_options.append(SignInOption(provider="phone"))
            return TenantUiConfig(display_name=project_id, sign_in_options=sign_in_options)

        http_response = await self._tenant_config_handler.send(
            url_params={"projectId": project_id, "tenantId": tenant_id},
            default_message=DEFAULT_ERROR_GET_TENANT_CONFIG,
        )
        tenant = _as_dict(http_response.body)
        if tenant.get("allowPasswordSignup"):
            sign_in_options.append(SignInOption(provider="password"))
        return TenantUiConfig(display_name=tenant.get("displayName") or None, sign_in_options=sign_in_options)

    @staticmethod
    async def _list_enabled_idps(
        handler: AuthenticatedRequestHandler,
        resource_id: str,
        collection: str,
        error_message: str,
        with_display_name: bool = True,
    ) -> List[SignInOption]:
        http_response = await handler.send(
            url_params={"resourceId": resource_id, "pageSize": str(PAGE_SIZE)},
            default_message=error_message,
        )
        delimiter = f"{collection}/"
        sign_in_options = []
        for idp_config in _as_dict(http_response.body).get(collection) or []:
            if not isinstance(idp_config, dict) or not idp_config.get("enabled"):
                continue
            name = idp_config.get("name", "")
            # The provider ID is the last component of the resource name.
            provider_id = name[name.find(delimiter) + len(delimiter):] if delimiter in name else name
            if with_display_name:
                sign_in_options.append(SignInOption(provider=provider_id, provider_name=idp_config.get("displayName")))
            else:
                sign_in_options.append(SignInOption(provider=provider_id))
        return sign_in_options
