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
UI configuration schema and the builder of the default UI configuration.

The UI configuration maps a GCIP API key to the sign-in page settings and to the
tenants (with their sign-in options) the page can sign users into.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from authui_container.shared import validators
from authui_container.shared.models import GcipConfig, TenantUiConfig
from authui_container.shared.validators import (
    JsonObjectValidator,
    JsonValidationError,
    ValidationNode,
    ValidationTree,
    Validator,
)

logger = logging.getLogger(__name__)

# Icon of each tenant button in the tenant selection screen.
TENANT_ICON_URL = "https://www.gstatic.com/firebasejs/ui/2.0.0/images/auth/anonymous.png"
DEFAULT_BUTTON_COLOR = "#007bff"
DEFAULT_DISPLAY_MODE = "optionFirst"
DEFAULT_SIGN_IN_FLOW = "redirect"
PROJECT_LEVEL_TENANT_KEY = "_"
PROJECT_LEVEL_DISPLAY_NAME = "My Company"

REQUIRED_FIELDS = (
    "*.authDomain",
    "*.displayMode",
    "*.tenants.*.displayName",
    "*.tenants.*.iconUrl",
    "*.tenants.*.buttonColor",
    "*.tenants.*.signInOptions[]",
)

Predicate = Callable[[Any], bool]


def _check(predicate: Predicate, message: str) -> Validator:
    def validator(value: Any, key: str) -> None:
        if not predicate(value):
            raise JsonValidationError(f'"{key}" {message}')

    return validator


def _leaf(predicate: Predicate, message: str) -> ValidationNode:
    return ValidationNode(validator=_check(predicate, message))


def _optional(predicate: Predicate) -> Predicate:
    # Empty strings and nulls are allowed for optional fields.
    return lambda value: not value or predicate(value)


def _one_of(*choices: str) -> ValidationNode:
    if len(choices) == 2:
        message = f'should be either "{choices[0]}" or "{choices[1]}".'
    else:
        message = "should be one of [" + ", ".join(f'"{choice}"' for choice in choices) + "]."
    return _leaf(lambda value: isinstance(value, str) and value in choices, message)


def _string() -> ValidationNode:
    return _leaf(validators.is_safe_string, "should be a valid string.")


def _label() -> ValidationNode:
    return _leaf(validators.is_safe_wide_string, "should be a valid string.")


def _https_url() -> ValidationNode:
    return _leaf(validators.is_https_url, "should be a valid HTTPS URL.")


def _optional_https_url() -> ValidationNode:
    return _leaf(_optional(validators.is_https_url), "should be a valid HTTPS URL.")


def _color() -> ValidationNode:
    return _leaf(validators.is_valid_color_string, "should be a valid color string of format #xxxxxx.")


def _restricted_operation() -> ValidationNode:
    return ValidationNode(
        nodes={
            "status": _leaf(validators.is_boolean, "should be a boolean."),
            "adminEmail": _leaf(_optional(validators.is_email), "should be a valid email."),
            "helpLink": _optional_https_url(),
        }
    )


SIGN_IN_OPTION_NODES: ValidationTree = {
    "provider": _leaf(validators.is_provider_id, "should be a valid providerId string."),
    "providerName": _label(),
    "fullLabel": _label(),
    # Regexp is not an allowed JSON value, limited to domains.
    "hd": _leaf(validators.is_safe_string, "should be a valid domain string."),
    "buttonColor": _color(),
    "iconUrl": _https_url(),
    # Google OAuth scopes are URLs.
    "scopes[]": _leaf(
        lambda value: validators.is_safe_string(value) or validators.is_https_url(value),
        "should be a valid array of OAuth scopes.",
    ),
    "customParameters": ValidationNode(nodes={"*": _string()}),
    "loginHintKey": _string(),
    "requireDisplayName": _leaf(validators.is_boolean, "should be a valid boolean."),
    "recaptchaParameters": ValidationNode(
        nodes={
            "type": _one_of("image", "audio"),
            "size": _one_of("invisible", "compact", "normal"),
            "badge": _one_of("bottomright", "bottomleft", "inline"),
        }
    ),
    "defaultCountry": _string(),
    "defaultNationalNumber": _string(),
    "loginHint": _string(),
    "whitelistedCountries[]": _string(),
    "blacklistedCountries[]": _string(),
    "disableSignUp": _restricted_operation(),
}

TENANT_NODES: ValidationTree = {
    "fullLabel": _label(),
    "displayName": _label(),
    "iconUrl": _https_url(),
    "logoUrl": _optional_https_url(),
    "buttonColor": _color(),
    "tosUrl": _optional_https_url(),
    "privacyPolicyUrl": _optional_https_url(),
    "immediateFederatedRedirect": _leaf(validators.is_boolean, "should be a valid boolean."),
    "signInFlow": _one_of("popup", "redirect"),
    "adminRestrictedOperation": _restricted_operation(),
    # Sign-in options are either provider ID strings or provider objects.
    "signInOptions[]": ValidationNode(
        validator=_check(validators.is_provider_id, "should be a valid providerId string or provider object."),
        nodes=SIGN_IN_OPTION_NODES,
    ),
}

VALIDATION_TREE: ValidationTree = {
    "*": ValidationNode(
        nodes={
            "authDomain": _string(),
            "displayMode": _one_of("optionFirst", "identifierFirst"),
            "selectTenantUiTitle": _label(),
            "selectTenantUiLogo": _optional_https_url(),
            "styleUrl": _optional_https_url(),
            "tosUrl": _optional_https_url(),
            "privacyPolicyUrl": _optional_https_url(),
            "tenants": ValidationNode(nodes={"*": ValidationNode(nodes=TENANT_NODES)}),
        }
    ),
}


class DefaultUiConfigBuilder:
    """
    Builds the default UI configuration out of the GCIP web config and the
    sign-in options enabled on the tenants IAP is configured with.
    """

    _ui_config_validator = JsonObjectValidator(VALIDATION_TREE, REQUIRED_FIELDS)

    def __init__(
        self,
        project_id: str,
        hostname: Optional[str],
        gcip_config: GcipConfig,
        tenant_ui_config_map: Mapping[str, TenantUiConfig],
    ):
        """
        Args:
            project_id: The project ID, shown as the tenant selection title.
            hostname: Hostname of the sign-in page. Used as authDomain when set so that
                the auth domain shares the origin of the sign-in UI.
            gcip_config: The GCIP web config.
            tenant_ui_config_map: Tenant IDs mapped to their TenantUiConfig.
        """
        self.project_id = project_id
        self.hostname = hostname
        self.gcip_config = gcip_config
        self.tenant_ui_config_map = tenant_ui_config_map

    @classmethod
    def validate_config(cls, config: Any) -> None:
        """Raises JsonValidationError when the UI configuration is not valid."""
        cls._ui_config_validator.validate(config)

    def build(self) -> Optional[Dict[str, Any]]:
        """Returns the default UI config, None when IAP or the IdPs are not configured yet."""
        tenant_configs: Dict[str, Dict[str, Any]] = {}
        next_letter = ord("A")
        total_sign_in_options = 0

        for tenant_id, tenant_ui_config in self.tenant_ui_config_map.items():
            if tenant_id.startswith(PROJECT_LEVEL_TENANT_KEY):
                key = PROJECT_LEVEL_TENANT_KEY
                default_display_name = PROJECT_LEVEL_DISPLAY_NAME
            else:
                key = tenant_id
                default_display_name = f"Company {chr(next_letter)}"
                next_letter += 1

            sign_in_options = [
                option.model_dump(by_alias=True, exclude_none=True)
                for option in tenant_ui_config.sign_in_options
            ]
            total_sign_in_options += len(sign_in_options)

            tenant_config: Dict[str, Any] = {
                "displayName": tenant_ui_config.display_name or default_display_name,
                "iconUrl": TENANT_ICON_URL,
                "logoUrl": "",
                "buttonColor": DEFAULT_BUTTON_COLOR,
                # Ignored by the sign-in UI when more than one provider is available.
                "immediateFederatedRedirect": True,
                "signInFlow": DEFAULT_SIGN_IN_FLOW,
                "signInOptions": sign_in_options,
                "tosUrl": "",
                "privacyPolicyUrl": "",
            }
            if tenant_ui_config.full_label:
                tenant_config["fullLabel"] = tenant_ui_config.full_label
            if tenant_ui_config.admin_restricted_operation:
                tenant_config["adminRestrictedOperation"] = (
                    tenant_ui_config.admin_restricted_operation.model_dump(by_alias=True, exclude_none=True)
                )
            tenant_configs[key] = tenant_config

        if total_sign_in_options == 0:
            logger.info("No sign-in options found, IAP or the IdPs are not configured yet.")
            return None

        return {
            self.gcip_config.api_key: {
                "authDomain": self.hostname or self.gcip_config.auth_domain,
                "displayMode": DEFAULT_DISPLAY_MODE,
                "selectTenantUiTitle": self.project_id,
                "selectTenantUiLogo": "",
                "styleUrl": "",
                "tenants": tenant_configs,
                "tosUrl": "",
                "privacyPolicyUrl": "",
            }
        }
