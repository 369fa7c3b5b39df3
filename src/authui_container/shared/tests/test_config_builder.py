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

import copy
import re
import time

import pytest

from authui_container.shared.config_builder import (
    DEFAULT_BUTTON_COLOR,
    TENANT_ICON_URL,
    DefaultUiConfigBuilder,
)
from authui_container.shared.models import GcipConfig, TenantUiConfig
from authui_container.shared.validators import JsonValidationError

PROJECT_ID = "project-id"
API_KEY = "API_KEY"
AUTH_DOMAIN = "AUTH_SUBDOMAIN.firebaseapp.com"

GCIP_CONFIG = GcipConfig(apiKey=API_KEY, authDomain=AUTH_DOMAIN)

TENANT_UI_CONFIG_MAP = {
    "_": {
        "displayName": "ABCD",
        "signInOptions": [
            {"provider": "facebook.com"},
            {"provider": "twitter.com"},
            {"provider": "saml.idp1", "providerName": "saml-display-name-1"},
            {"provider": "oidc.idp1", "providerName": "oidc-display-name-1"},
        ],
    },
    "tenantId1": {
        "displayName": "Tenant-display-name-1",
        "signInOptions": [
            {"provider": "password"},
            {"provider": "saml.idp2", "providerName": "saml-display-name-2"},
        ],
    },
    "tenantId2": {
        "displayName": "Tenant-display-name-2",
        "signInOptions": [{"provider": "microsoft.com"}],
    },
}


def _tenant(display_name, sign_in_options):
    return {
        "displayName": display_name,
        "iconUrl": TENANT_ICON_URL,
        "logoUrl": "",
        "buttonColor": DEFAULT_BUTTON_COLOR,
        "immediateFederatedRedirect": True,
        "signInFlow": "redirect",
        "signInOptions": sign_in_options,
        "tosUrl": "",
        "privacyPolicyUrl": "",
    }


EXPECTED_UI_CONFIG = {
    API_KEY: {
        "authDomain": AUTH_DOMAIN,
        "displayMode": "optionFirst",
        "selectTenantUiTitle": PROJECT_ID,
        "selectTenantUiLogo": "",
        "styleUrl": "",
        "tenants": {
            "_": _tenant("ABCD", TENANT_UI_CONFIG_MAP["_"]["signInOptions"]),
            "tenantId1": _tenant("Tenant-display-name-1", TENANT_UI_CONFIG_MAP["tenantId1"]["signInOptions"]),
            "tenantId2": _tenant("Tenant-display-name-2", TENANT_UI_CONFIG_MAP["tenantId2"]["signInOptions"]),
        },
        "tosUrl": "",
        "privacyPolicyUrl": "",
    }
}


def _tenant_ui_config_map(raw=None):
    return {
        tenant_id: TenantUiConfig.model_validate(value)
        for tenant_id, value in (TENANT_UI_CONFIG_MAP if raw is None else raw).items()
    }


@pytest.fixture
def ui_config():
    return copy.deepcopy(EXPECTED_UI_CONFIG)


# Tests for `DefaultUiConfigBuilder.build`
def test_build_populated_ui_config():
    builder = DefaultUiConfigBuilder(PROJECT_ID, None, GCIP_CONFIG, _tenant_ui_config_map())
    assert builder.build() == EXPECTED_UI_CONFIG


def test_build_uses_hostname_as_auth_domain():
    builder = DefaultUiConfigBuilder(PROJECT_ID, "auth.example.com", GCIP_CONFIG, _tenant_ui_config_map())
    assert builder.build()[API_KEY]["authDomain"] == "auth.example.com"


def test_build_default_display_names():
    raw = copy.deepcopy(TENANT_UI_CONFIG_MAP)
    for value in raw.values():
        del value["displayName"]
    builder = DefaultUiConfigBuilder(PROJECT_ID, None, GCIP_CONFIG, _tenant_ui_config_map(raw))
    tenants = builder.build()[API_KEY]["tenants"]
    assert tenants["_"]["displayName"] == "My Company"
    assert tenants["tenantId1"]["displayName"] == "Company A"
    assert tenants["tenantId2"]["displayName"] == "Company B"


def test_build_project_level_tenant_key():
    raw = {"_project-id": TENANT_UI_CONFIG_MAP["_"]}
    builder = DefaultUiConfigBuilder(PROJECT_ID, None, GCIP_CONFIG, _tenant_ui_config_map(raw))
    assert list(builder.build()[API_KEY]["tenants"]) == ["_"]


def test_build_optional_tenant_fields():
    raw = {
        "tenantId1": {
            "fullLabel": "Employee Login",
            "signInOptions": [{"provider": "password"}],
            "adminRestrictedOperation": {"status": True, "adminEmail": "admin@example.com"},
        }
    }
    builder = DefaultUiConfigBuilder(PROJECT_ID, None, GCIP_CONFIG, _tenant_ui_config_map(raw))
    tenant = builder.build()[API_KEY]["tenants"]["tenantId1"]
    assert tenant["fullLabel"] == "Employee Login"
    assert tenant["adminRestrictedOperation"] == {"status": True, "adminEmail": "admin@example.com"}


def test_build_returns_none_without_tenants():
    assert DefaultUiConfigBuilder(PROJECT_ID, None, GCIP_CONFIG, {}).build() is None


def test_build_returns_none_without_sign_in_options():
    raw = {"tenantId1": {"displayName": "Tenant"}}
    assert DefaultUiConfigBuilder(PROJECT_ID, None, GCIP_CONFIG, _tenant_ui_config_map(raw)).build() is None


def test_built_config_is_valid():
    builder = DefaultUiConfigBuilder(PROJECT_ID, "auth.example.com", GCIP_CONFIG, _tenant_ui_config_map())
    DefaultUiConfigBuilder.validate_config(builder.build())


# Tests for `DefaultUiConfigBuilder.validate_config`
def test_validate_config_valid(ui_config):
    DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_full(ui_config):
    config = ui_config[API_KEY]
    config["displayMode"] = "identifierFirst"
    config["selectTenantUiLogo"] = "https://example.com/logo.png"
    config["styleUrl"] = "https://example.com/style.css"
    config["tosUrl"] = "https://example.com/tos"
    config["privacyPolicyUrl"] = "https://example.com/privacy"
    tenant = config["tenants"]["tenantId1"]
    tenant["fullLabel"] = "テナント 1"
    tenant["signInFlow"] = "popup"
    tenant["adminRestrictedOperation"] = {
        "status": True,
        "adminEmail": "admin@example.com",
        "helpLink": "https://example.com/help",
    }
    tenant["signInOptions"] = [
        "facebook.com",
        {
            "provider": "google.com",
            "hd": "example.com",
            "buttonColor": "#ffffff",
            "iconUrl": "https://example.com/icon.png",
            "scopes": ["email", "https://www.googleapis.com/auth/contacts.readonly"],
            "customParameters": {"prompt": "select_account"},
            "loginHintKey": "login_hint",
        },
        {
            "provider": "password",
            "requireDisplayName": False,
            "disableSignUp": {"status": True, "adminEmail": "", "helpLink": ""},
        },
        {
            "provider": "phone",
            "recaptchaParameters": {"type": "image", "size": "invisible", "badge": "bottomleft"},
            "defaultCountry": "GB",
            "defaultNationalNumber": "1234567890",
            "loginHint": "+11234567890",
            "whitelistedCountries": ["GB", "+44"],
            "blacklistedCountries": [],
        },
    ]
    DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_empty_sign_in_options(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId2"]["signInOptions"] = []
    DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_multiple_sign_in_option_types(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId2"]["signInOptions"] = ["facebook.com", {"provider": "twitter.com"}]
    DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_invalid_key(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId2"]["foo"] = "bar"
    with pytest.raises(JsonValidationError, match=re.escape(f'Invalid key or type "{API_KEY}.tenants.tenantId2.foo"')):
        DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_invalid_sign_in_option(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId2"]["signInOptions"][0] = True
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == (
        f'"{API_KEY}.tenants.tenantId2.signInOptions[]" should be a valid providerId string or provider object.'
    )


def test_validate_config_sign_in_options_not_an_array(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId2"]["signInOptions"] = {}
    with pytest.raises(
        JsonValidationError, match=re.escape(f'Invalid key or type "{API_KEY}.tenants.tenantId2.signInOptions"')
    ):
        DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_missing_required_field(ui_config):
    del ui_config[API_KEY]["tenants"]["tenantId1"]["buttonColor"]
    with pytest.raises(JsonValidationError, match=re.escape('Missing required field "*.tenants.*.buttonColor"')):
        DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_empty_tenant(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId2"] = {}
    with pytest.raises(JsonValidationError, match=re.escape('Missing required field "*.tenants.*.displayName"')):
        DefaultUiConfigBuilder.validate_config(ui_config)


def test_validate_config_empty_object_leaf(ui_config):
    ui_config[API_KEY]["authDomain"] = {}
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == f'"{API_KEY}.authDomain" should be a valid string.'


def test_validate_config_long_invalid_url_fails_fast(ui_config):
    ui_config[API_KEY]["styleUrl"] = "https://" + "a" * 40 + "!"
    start = time.perf_counter()
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert time.perf_counter() - start < 1
    assert str(excinfo.value) == f'"{API_KEY}.styleUrl" should be a valid HTTPS URL.'


@pytest.mark.parametrize(
    "path, value, message",
    [
        (("authDomain",), "<script>", "should be a valid string."),
        (("displayMode",), "other", 'should be either "optionFirst" or "identifierFirst".'),
        (("selectTenantUiTitle",), "<b>", "should be a valid string."),
        (("selectTenantUiLogo",), "http://example.com/logo.png", "should be a valid HTTPS URL."),
        (("styleUrl",), "invalid", "should be a valid HTTPS URL."),
        (("tosUrl",), "ftp://example.com", "should be a valid HTTPS URL."),
        (("privacyPolicyUrl",), "invalid", "should be a valid HTTPS URL."),
        (("tenants", "tenantId1", "fullLabel"), "<b>", "should be a valid string."),
        (("tenants", "tenantId1", "displayName"), "", "should be a valid string."),
        (("tenants", "tenantId1", "iconUrl"), "", "should be a valid HTTPS URL."),
        (("tenants", "tenantId1", "logoUrl"), "http://example.com", "should be a valid HTTPS URL."),
        (("tenants", "tenantId1", "buttonColor"), "#fff", "should be a valid color string of format #xxxxxx."),
        (("tenants", "tenantId1", "immediateFederatedRedirect"), "true", "should be a valid boolean."),
        (("tenants", "tenantId1", "signInFlow"), "other", 'should be either "popup" or "redirect".'),
    ],
)
def test_validate_config_invalid_leaf(ui_config, path, value, message):
    target = ui_config[API_KEY]
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == f'"{".".join((API_KEY,) + path)}" {message}'


@pytest.mark.parametrize(
    "key, value, message",
    [
        ("provider", "p?rovider", "should be a valid providerId string."),
        ("providerName", "<b>", "should be a valid string."),
        ("hd", "/regex/", "should be a valid domain string."),
        ("buttonColor", "red", "should be a valid color string of format #xxxxxx."),
        ("iconUrl", "http://example.com/icon.png", "should be a valid HTTPS URL."),
        ("loginHintKey", "<", "should be a valid string."),
        ("requireDisplayName", "false", "should be a valid boolean."),
        ("defaultCountry", 1, "should be a valid string."),
    ],
)
def test_validate_config_invalid_sign_in_option_field(ui_config, key, value, message):
    ui_config[API_KEY]["tenants"]["tenantId1"]["signInOptions"][0][key] = value
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == f'"{API_KEY}.tenants.tenantId1.signInOptions[].{key}" {message}'


def test_validate_config_invalid_scopes(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId1"]["signInOptions"][0]["scopes"] = ["<scope>"]
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == (
        f'"{API_KEY}.tenants.tenantId1.signInOptions[].scopes[]" should be a valid array of OAuth scopes.'
    )


def test_validate_config_invalid_recaptcha_size(ui_config):
    ui_config[API_KEY]["tenants"]["tenantId1"]["signInOptions"][0]["recaptchaParameters"] = {"size": "large"}
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == (
        f'"{API_KEY}.tenants.tenantId1.signInOptions[].recaptchaParameters.size" '
        'should be one of ["invisible", "compact", "normal"].'
    )


def test_validate_config_invalid_admin_restricted_operation(ui_config):
    tenant = ui_config[API_KEY]["tenants"]["tenantId1"]
    tenant["adminRestrictedOperation"] = {"status": "yes"}
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == f'"{API_KEY}.tenants.tenantId1.adminRestrictedOperation.status" should be a boolean.'

    tenant["adminRestrictedOperation"] = {"status": True, "adminEmail": "invalid"}
    with pytest.raises(JsonValidationError) as excinfo:
        DefaultUiConfigBuilder.validate_config(ui_config)
    assert str(excinfo.value) == (
        f'"{API_KEY}.tenants.tenantId1.adminRestrictedOperation.adminEmail" should be a valid email.'
    )
