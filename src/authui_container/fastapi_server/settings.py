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

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field


def _is_disabled(value: Optional[str]) -> bool:
    return value in ("false", "0")


def _is_enabled(value: Optional[str]) -> bool:
    return value in ("true", "1")


class ServerSettings(BaseModel):
    """Runtime settings of the auth server, usually set on the Cloud Run service."""

    allow_admin: bool = Field(True, description="Serves the admin panel and its APIs.")
    ui_config: Optional[str] = Field(None, description="JSON UI configuration overriding any other.")
    gcs_bucket_name: Optional[str] = Field(None, description="Bucket holding the custom UI configuration.")
    k_configuration: Optional[str] = Field(None, description="Cloud Run configuration name.")
    debug_console: bool = Field(False, description="Enables debug logging.")
    port: int = Field(8080, description="Port the server listens on.")
    static_dir: Optional[str] = Field(None, description="Directory of the sign-in and admin scripts.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        return cls(
            allow_admin=not _is_disabled(env.get("ALLOW_ADMIN")),
            ui_config=env.get("UI_CONFIG") or None,
            gcs_bucket_name=env.get("GCS_BUCKET_NAME") or None,
            k_configuration=env.get("K_CONFIGURATION") or None,
            debug_console=_is_enabled(env.get("DEBUG_CONSOLE")),
            port=int(env.get("PORT") or 8080),
            static_dir=env.get("STATIC_DIR") or None,
        )
