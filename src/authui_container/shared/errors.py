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

from typing import Any, Dict, Optional

# Google Cloud standard error responses:
# https://cloud.google.com/apis/design/errors
ErrorResponse = Dict[str, Dict[str, Any]]

UNKNOWN_ERROR_MESSAGE = "Unknown server error."


def error_response(code: int, status: str, message: str) -> ErrorResponse:
    return {"error": {"code": code, "message": message, "status": status}}


ERROR_MAP: Dict[str, ErrorResponse] = {
    "INVALID_ARGUMENT": error_response(400, "INVALID_ARGUMENT", "Client specified an invalid argument."),
    "FAILED_PRECONDITION": error_response(
        400, "FAILED_PRECONDITION", "Request can not be executed in the current system state."
    ),
    "OUT_OF_RANGE": error_response(400, "OUT_OF_RANGE", "Client specified an invalid range."),
    "UNAUTHENTICATED": error_response(
        401, "UNAUTHENTICATED", "Request not authenticated due to missing, invalid, or expired OAuth token."
    ),
    "PERMISSION_DENIED": error_response(403, "PERMISSION_DENIED", "Client does not have sufficient permission."),
    "NOT_FOUND": error_response(
        404, "NOT_FOUND", "A specified resource is not found, or the request is rejected by undisclosed reasons."
    ),
    "ABORTED": error_response(409, "ABORTED", "Concurrency conflict, such as read-modify-write conflict."),
    "ALREADY_EXISTS": error_response(
        409, "ALREADY_EXISTS", "The resource that a client tried to create already exists."
    ),
    "RESOURCE_EXHAUSTED": error_response(
        429, "RESOURCE_EXHAUSTED", "Either out of resource quota or reaching rate limiting."
    ),
    "CANCELLED": error_response(499, "CANCELLED", "Request cancelled by the client."),
    "DATA_LOSS": error_response(500, "DATA_LOSS", "Unrecoverable data loss or data corruption."),
    "UNKNOWN": error_response(500, "UNKNOWN", UNKNOWN_ERROR_MESSAGE),
    "INTERNAL": error_response(500, "INTERNAL", "Internal server error."),
    "NOT_IMPLEMENTED": error_response(501, "NOT_IMPLEMENTED", "API method not implemented by the server."),
    "UNAVAILABLE": error_response(503, "UNAVAILABLE", "Service unavailable."),
    "DEADLINE_EXCEEDED": error_response(504, "DEADLINE_EXCEEDED", "Request deadline exceeded."),
}


class CloudApiException(Exception):
    """
    Raised when a Google Cloud REST call does not answer with a 200.

    `cloud_compliant` tells whether `raw_response` is a canonical Google Cloud
    error payload that can be relayed to the caller as is.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        raw_response: Optional[Any] = None,
        cloud_compliant: bool = False,
    ):
        self.status_code = status_code
        self.detail = detail
        self.raw_response = raw_response
        self.cloud_compliant = cloud_compliant
        super().__init__(detail)

    def __str__(self) -> str:
        return self.detail
