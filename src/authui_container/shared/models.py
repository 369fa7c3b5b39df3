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

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GcipConfig(BaseModel):
    """Web configuration needed by the sign-in page to initialize the auth SDK."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(..., alias="apiKey", description="The Identity Platform browser API key.")
    auth_domain: str = Field(..., alias="authDomain", description="The auth domain, <subdomain>.firebaseapp.com.")


class AdminRestrictedOperation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: bool = Field(..., description="Whether sign up is restricted to administrators.")
    admin_email: Optional[str] = Field(None, alias="adminEmail")
    help_link: Optional[str] = Field(None, alias="helpLink")


class SignInOption(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    provider: str = Field(..., description="Provider ID, e.g. 'password', 'google.com' or 'saml.my-idp'.")
    provider_name: Optional[str] = Field(None, alias="providerName", description="Display name of SAML/OIDC IdPs.")


class TenantUiConfig(BaseModel):
    """Sign-in options enabled on a single tenant (or the project level `_` tenant)."""

    model_config = ConfigDict(populate_by_name=True)

    full_label: Optional[str] = Field(None, alias="fullLabel")
    display_name: Optional[str] = Field(None, alias="displayName")
    sign_in_options: List[SignInOption] = Field(default_factory=list, alias="signInOptions")
    admin_restricted_operation: Optional[AdminRestrictedOperation] = Field(
        None, alias="adminRestrictedOperation"
    )


class GoogleOAuthAccessToken(BaseModel):
    access_token: str = Field(..., description="The OAuth access token.")
    expires_in: float = Field(..., description="Lifetime of the token in seconds.")


class HttpResponse(BaseModel):
    status_code: int
    body: Any = None
    text: str = ""
