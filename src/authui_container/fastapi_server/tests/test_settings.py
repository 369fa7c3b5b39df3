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

from unittest.mock import patch

from authui_container.fastapi_server.settings import ServerSettings


# Tests for `ServerSettings.from_env`
def test_from_env_defaults():
    settings = ServerSettings.from_env({})
    assert settings.allow_admin
    assert settings.ui_config is None
    assert settings.gcs_bucket_name is None
    assert settings.k_configuration is None
    assert not settings.debug_console
    assert settings.port == 8080
    assert settings.static_dir is None


def test_from_env_values():
    settings = ServerSettings.from_env(
        {
            "ALLOW_ADMIN": "true",
            "UI_CONFIG": '{"key": "value"}',
            "GCS_BUCKET_NAME": "my-bucket",
            "K_CONFIGURATION": "my-config",
            "DEBUG_CONSOLE": "1",
            "PORT": "9000",
            "STATIC_DIR": "/app/public",
        }
    )
    assert settings.allow_admin
    assert settings.ui_config == '{"key": "value"}'
    assert settings.gcs_bucket_name == "my-bucket"
    assert settings.k_configuration == "my-config"
    assert settings.debug_console
    assert settings.port == 9000
    assert settings.static_dir == "/app/public"


def test_from_env_admin_disabled():
    assert not ServerSettings.from_env({"ALLOW_ADMIN": "false"}).allow_admin
    assert not ServerSettings.from_env({"ALLOW_ADMIN": "0"}).allow_admin
    assert ServerSettings.from_env({"ALLOW_ADMIN": "no"}).allow_admin


def test_from_env_debug_console():
    assert ServerSettings.from_env({"DEBUG_CONSOLE": "true"}).debug_console
    assert not ServerSettings.from_env({"DEBUG_CONSOLE": "false"}).debug_console


def test_from_env_empty_values():
    settings = ServerSettings.from_env({"UI_CONFIG": "", "GCS_BUCKET_NAME": "", "PORT": ""})
    assert settings.ui_config is None
    assert settings.gcs_bucket_name is None
    assert settings.port == 8080


@patch.dict("os.environ", {"GCS_BUCKET_NAME": "env-bucket", "ALLOW_ADMIN": "false"}, clear=True)
def test_from_env_process_environment():
    settings = ServerSettings.from_env()
    assert settings.gcs_bucket_name == "env-bucket"
    assert not settings.allow_admin
