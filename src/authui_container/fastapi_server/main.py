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
from typing import Optional

import uvicorn
from fastapi import FastAPI

from authui_container.fastapi_server.auth_server import HOSTED_UI_VERSION, AuthServer
from authui_container.fastapi_server.settings import ServerSettings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    return AuthServer(settings).app


def main() -> None:
    settings = ServerSettings.from_env()
    # DEBUG_CONSOLE turns on request tracing, visible in the Cloud Run LOGS tab.
    logging.basicConfig(level=logging.DEBUG if settings.debug_console else logging.INFO)

    logger.info(f"Server started with version {HOSTED_UI_VERSION}")
    if settings.ui_config:
        logger.info("UI configuration provided through UI_CONFIG.")

    # Cloud Run terminates TLS, forwarded headers carry the original scheme.
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
