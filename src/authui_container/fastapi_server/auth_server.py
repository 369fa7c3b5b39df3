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

"""
The auth server: serves the IAP sign-in page, the UI configuration it consumes
and the admin panel used to customize that configuration.

The configuration served by /config is, in order of precedence, the UI_CONFIG
environment variable, the config.json file saved in GCS by the admin panel and
the default configuration built from the GCIP and IAP settings of the project.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from authui_container import __version__
from authui_container.api.cloud_storage import CloudStorageHandler
from authui_container.api.gcip import GcipHandler
from authui_container.api.http_client import TIMEOUT_DURATION
from authui_container.api.iap_settings import IapSettingsHandler, get_tenant_ids
from authui_container.api.metadata_server import MetadataServer
from authui_container.api.token_manager import StaticAccessTokenManager
from authui_container.fastapi_server import templates
from authui_container.fastapi_server.settings import ServerSettings
from authui_container.shared.config_builder import PROJECT_LEVEL_TENANT_KEY, DefaultUiConfigBuilder
from authui_container.shared.errors import (
    ERROR_MAP,
    UNKNOWN_ERROR_MESSAGE,
    CloudApiException,
    ErrorResponse,
    error_response,
)
from authui_container.shared.models import TenantUiConfig
from authui_container.shared.utils import compute_bucket_name

logger = logging.getLogger(__name__)

# Scopes of the service account token used to build the default config.
AUTH_SERVER_SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/identitytoolkit",
]
CONFIG_FILE_NAME = "config.json"
HOSTED_UI_VERSION = __version__
SIGN_IN_LOGO = "https://img.icons8.com/cotton/2x/cloud.png"
SAVE_SUCCESS_MESSAGE = "Changes successfully saved."
INVALID_UI_CONFIG_MESSAGE = "Invalid UI configuration."
PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
# Managed by the servers on each side of the proxy.
PROXY_EXCLUDED_HEADERS = {"host", "content-length", "transfer-encoding", "content-encoding", "connection"}


def _error_response(response: ErrorResponse) -> JSONResponse:
    return JSONResponse(response, status_code=int(response["error"]["code"]))


def _is_not_found(error: CloudApiException) -> bool:
    return "not found" in error.detail.lower() or error.status_code == 404


def _get_bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization")
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) <= 1 or not parts[1]:
        return None
    return parts[1]


class AuthServer:
    """
    Builds the FastAPI application of the auth server.

    The metadata server identity is used for read operations (e.g. building the
    default config). Write operations to GCS are done with the OAuth access token
    of the admin user calling the admin APIs.
    """

    def __init__(
        self,
        settings: Optional[ServerSettings] = None,
        metadata_server: Optional[MetadataServer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            settings: Server settings, read from the environment when omitted.
            metadata_server: Source of the project data and of the service account tokens.
            transport: Optional httpx transport used for every outgoing request.
        """
        self.settings = settings or ServerSettings.from_env()
        self.transport = transport
        self.metadata_server = metadata_server or MetadataServer(AUTH_SERVER_SCOPES, transport=transport)
        self.gcip_handler = GcipHandler(self.metadata_server, self.metadata_server, transport=transport)
        self.iap_settings_handler = IapSettingsHandler(self.metadata_server, self.metadata_server, transport=transport)
        self._bucket_name: Optional[str] = None
        self._auth_domain_proxy_target: Optional[str] = None
        # The default config is kept in memory once IAP is configured.
        self._default_config: Optional[Dict[str, Any]] = None
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        app = FastAPI(title="Auth UI container", version=HOSTED_UI_VERSION, docs_url=None, redoc_url=None)

        if self.settings.static_dir and os.path.isdir(self.settings.static_dir):
            app.mount("/static", StaticFiles(directory=self.settings.static_dir), name="static")
        elif self.settings.static_dir:
            logger.warning(f"Static directory {self.settings.static_dir} not found, /static is not served.")

        app.add_api_route("/", self.sign_in_page, methods=["GET"], response_class=HTMLResponse)
        app.add_api_route("/versionz", self.version, methods=["GET"], response_class=HTMLResponse)
        app.add_api_route("/authdomain-proxytarget", self.auth_domain_proxy_target, methods=["GET"])
        app.add_api_route("/gcipConfig", self.gcip_config, methods=["GET"])
        app.add_api_route("/config", self.config, methods=["GET"])

        # The admin panel can be disabled when deploying the service.
        if self.settings.allow_admin:
            app.add_api_route("/admin", self.admin_page, methods=["GET"], response_class=HTMLResponse)
            app.add_api_route("/get_admin_config", self.get_admin_config, methods=["GET"])
            app.add_api_route("/set_admin_config", self.set_admin_config, methods=["POST"])
        else:
            logger.info("Admin panel disabled.")

        # Auth handler widget, served by <project>.firebaseapp.com.
        app.add_api_route("/__/auth/{path:path}", self.proxy_auth_request, methods=PROXY_METHODS)
        return app

    # --- Routes ---

    async def sign_in_page(self) -> HTMLResponse:
        return HTMLResponse(templates.main(logo=SIGN_IN_LOGO))

    async def version(self) -> HTMLResponse:
        return HTMLResponse(HOSTED_UI_VERSION)

    async def admin_page(self) -> HTMLResponse:
        return HTMLResponse(templates.admin())

    async def auth_domain_proxy_target(self) -> Response:
        """Where /__/auth/ requests are proxied to, same as the authDomain of /gcipConfig."""
        try:
            target = await self.fetch_auth_domain_proxy_target()
        except Exception as e:
            return self._handle_error(e)
        return HTMLResponse(target)

    async def gcip_config(self) -> Response:
        try:
            gcip_config = await self.gcip_handler.get_gcip_config()
        except Exception as e:
            return self._handle_error(e)
        return JSONResponse(gcip_config.model_dump(by_alias=True))

    async def config(self, request: Request) -> Response:
        # The sign-in page hostname becomes the authDomain of the default config,
        # keeping the auth domain on the origin of the sign-in UI.
        try:
            current_config = await self.get_fallback_config(request.url.hostname)
        except Exception as e:
            return self._handle_error(e)
        if not current_config:
            return _error_response(ERROR_MAP["NOT_FOUND"])
        return JSONResponse(current_config)

    async def get_admin_config(self, request: Request) -> Response:
        access_token = _get_bearer_token(request)
        if not access_token:
            return _error_response(ERROR_MAP["UNAUTHENTICATED"])
        try:
            admin_config = await self.get_config_for_admin(access_token, request.url.hostname)
        except Exception as e:
            return self._handle_error(e)
        return JSONResponse(admin_config or {})

    async def set_admin_config(self, request: Request) -> Response:
        access_token = _get_bearer_token(request)
        if not access_token:
            return _error_response(ERROR_MAP["UNAUTHENTICATED"])
        try:
            custom_config = await request.json()
        except ValueError:
            custom_config = None
        if not isinstance(custom_config, dict) or not custom_config:
            return _error_response(ERROR_MAP["INVALID_ARGUMENT"])

        try:
            DefaultUiConfigBuilder.validate_config(custom_config)
        except ValueError as e:
            logger.info(f"Rejected UI configuration: {e}")
            return _error_response(error_response(400, "INVALID_ARGUMENT", str(e) or INVALID_UI_CONFIG_MESSAGE))

        try:
            await self.set_config_for_admin(access_token, custom_config)
        except Exception as e:
            return self._handle_error(e)
        return JSONResponse({"status": 200, "message": SAVE_SUCCESS_MESSAGE})

    async def proxy_auth_request(self, request: Request, path: str) -> Response:
        try:
            target = await self.fetch_auth_domain_proxy_target()
        except Exception as e:
            return self._handle_error(e)

        url = f"{target}/__/auth/{path}"
        if request.url.query:
            url = f"{url}?{request.url.query}"
        headers = {k: v for k, v in request.headers.items() if k.lower() not in PROXY_EXCLUDED_HEADERS}
        logger.debug(f"Proxying {request.method} {request.url.path} to {url}")
        try:
            async with httpx.AsyncClient(timeout=TIMEOUT_DURATION, transport=self.transport) as client:
                upstream = await client.request(request.method, url, headers=headers, content=await request.body())
        except httpx.HTTPError as e:
            logger.error(f"Failed to proxy requests to target {target}: {e}")
            return _error_response(ERROR_MAP["UNAVAILABLE"])

        response = Response(content=upstream.content, status_code=upstream.status_code)
        for key, value in upstream.headers.multi_items():
            if key.lower() not in PROXY_EXCLUDED_HEADERS:
                response.headers.append(key, value)
        return response

    # --- Configuration ---

    async def fetch_auth_domain_proxy_target(self) -> str:
        if not self._auth_domain_proxy_target:
            gcip_config = await self.gcip_handler.get_gcip_config()
            self._auth_domain_proxy_target = f"https://{gcip_config.auth_domain}"
            logger.info(f"Proxy auth requests to target {self._auth_domain_proxy_target}")
        return self._auth_domain_proxy_target

    async def get_bucket_name(self) -> str:
        if not self._bucket_name:
            if self.settings.gcs_bucket_name:
                self._bucket_name = self.settings.gcs_bucket_name
            else:
                project_number = await self.metadata_server.get_project_number()
                self._bucket_name = compute_bucket_name(self.settings.k_configuration, project_number)
            logger.debug(f"Custom UI configuration bucket: {self._bucket_name}")
        return self._bucket_name

    async def get_fallback_config(self, hostname: Optional[str]) -> Optional[Dict[str, Any]]:
        """Returns the current UI config, None when IAP is not configured yet."""
        if self.settings.ui_config:
            try:
                config = json.loads(self.settings.ui_config)
                DefaultUiConfigBuilder.validate_config(config)
                return config
            except ValueError as e:
                logger.warning(f"Invalid configuration in environment variable UI_CONFIG: {e}")

        cloud_storage_handler = CloudStorageHandler(self.metadata_server, self.metadata_server, transport=self.transport)
        try:
            bucket_name = await self.get_bucket_name()
            return await cloud_storage_handler.read_file(bucket_name, CONFIG_FILE_NAME)
        except (CloudApiException, ValueError) as e:
            logger.debug(f"No custom UI configuration available in GCS ({e}), using the default one.")

        if self._default_config is None:
            default_config = await self.get_default_config(hostname)
            # Not cached until IAP is configured. Errors are not cached either.
            if default_config is None:
                return None
            self._default_config = default_config
        return self._default_config

    async def get_default_config(self, hostname: Optional[str]) -> Optional[Dict[str, Any]]:
        """Builds the default UI config out of the IAP settings and the GCIP tenants they use."""
        project_id = await self.metadata_server.get_project_id()
        gcip_config = await self.gcip_handler.get_gcip_config()
        try:
            iap_settings = await self.iap_settings_handler.list_iap_settings()
        except CloudApiException as e:
            logger.warning(f"Unable to list IAP settings: {e}")
            iap_settings = []

        tenant_ids: List[str] = []
        for settings in iap_settings:
            for tenant_id in get_tenant_ids(settings):
                if tenant_id not in tenant_ids:
                    tenant_ids.append(tenant_id)

        tenant_ui_config_map: Dict[str, TenantUiConfig] = {}
        for tenant_id in tenant_ids:
            key = PROJECT_LEVEL_TENANT_KEY if tenant_id.startswith(PROJECT_LEVEL_TENANT_KEY) else tenant_id
            tenant_ui_config_map[key] = await self.gcip_handler.get_tenant_ui_config(tenant_id)

        return DefaultUiConfigBuilder(project_id, hostname, gcip_config, tenant_ui_config_map).build()

    async def get_config_for_admin(self, access_token: str, hostname: Optional[str]) -> Optional[Dict[str, Any]]:
        """Returns the config saved in GCS, the default config when none was saved yet."""
        # Required OAuth scope: https://www.googleapis.com/auth/devstorage.read_write
        cloud_storage_handler = CloudStorageHandler(
            self.metadata_server, StaticAccessTokenManager(access_token), transport=self.transport
        )
        bucket_name = await self.get_bucket_name()
        try:
            return await cloud_storage_handler.read_file(bucket_name, CONFIG_FILE_NAME)
        except CloudApiException as e:
            if not _is_not_found(e):
                raise
        # Permissions can't be checked on a missing bucket, the user must be able to list buckets.
        await cloud_storage_handler.list_buckets()
        return await self.get_default_config(hostname)

    async def set_config_for_admin(self, access_token: str, custom_config: Dict[str, Any]) -> None:
        """Saves the custom config to GCS, creating the bucket when needed."""
        cloud_storage_handler = CloudStorageHandler(
            self.metadata_server, StaticAccessTokenManager(access_token), transport=self.transport
        )
        bucket_name = await self.get_bucket_name()
        try:
            await cloud_storage_handler.read_file(bucket_name, CONFIG_FILE_NAME)
        except CloudApiException as e:
            if not _is_not_found(e):
                raise
            await self._create_bucket_if_missing(cloud_storage_handler, bucket_name)
        except ValueError:
            logger.warning(f"Overwriting unreadable {CONFIG_FILE_NAME} in bucket {bucket_name}")
        await cloud_storage_handler.write_file(bucket_name, CONFIG_FILE_NAME, custom_config)

    @staticmethod
    async def _create_bucket_if_missing(cloud_storage_handler: CloudStorageHandler, bucket_name: str) -> None:
        try:
            await cloud_storage_handler.create_bucket(bucket_name)
        except CloudApiException as e:
            # The bucket exists, only the file is missing.
            if e.status_code != 409:
                raise
            logger.debug(f"Bucket {bucket_name} already exists.")

    # --- Errors ---

    def _handle_error(self, error: Exception) -> JSONResponse:
        if isinstance(error, CloudApiException) and error.cloud_compliant:
            logger.warning(f"Relaying Google Cloud error: {error}")
            return _error_response(error.raw_response)
        logger.error(f"Unexpected error: {error}", exc_info=not isinstance(error, CloudApiException))
        return _error_response(error_response(500, "UNKNOWN", str(error) or UNKNOWN_ERROR_MESSAGE))
