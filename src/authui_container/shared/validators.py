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
import math
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, model_validator

WILDCARD = "*"
ARRAY_MARKER = "[]"

Validator = Callable[[Any, str], None]
Path = Tuple[str, ...]


class JsonValidationError(ValueError):
    """Raised when a JSON document does not match its validation tree."""


# --- Leaf predicates ---

_ILLEGAL_URL_CHARS = re.compile(r"[^a-z0-9:/?#\[\]@!$&'()*+,;=.\-_~%]", re.IGNORECASE)
# Letters, numbers, underscores and dashes separated by dots. No zone starts with '-' or '_'.
_HOSTNAME_RE = re.compile(r"[a-zA-Z0-9][\w\-]*(\.[a-zA-Z0-9][\w\-]*)*")
_PATHNAME_RE = re.compile(r"(/+[\w\-.~!$'()*+,;=:@%]+)*/*")
_EMAIL_RE = re.compile(r"[^@]+@[^@]+")
_PROVIDER_ID_RE = re.compile(r"[a-zA-Z0-9\-_.]+")
_COLOR_RE = re.compile(r"#[0-9a-f]{6}", re.IGNORECASE)
_SAFE_STRING_RE = re.compile(r"[a-zA-Z0-9\-_.\s,+?!&;]+")
_SAFE_WIDE_STRING_RE = re.compile(
    r"[a-zA-Z0-9\-_.\s,+?!&;"
    r"\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF\u3400-\u4DBF\u3000-\u303F\uFF00-\uFFEF]+"
)


def is_array(value: Any) -> bool:
    return isinstance(value, list)


def is_non_empty_array(value: Any) -> bool:
    return is_array(value) and len(value) != 0


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_non_empty_string(value: Any) -> bool:
    return is_string(value) and value != ""


def is_object(value: Any) -> bool:
    """A JSON object or null."""
    return value is None or isinstance(value, dict)


def is_non_null_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_empty_object(value: Any) -> bool:
    return is_non_null_object(value) and len(value) == 0


def is_url(url_str: Any) -> bool:
    """
    Checks that the value is an http(s) web URL made of legal characters,
    with a well formed hostname and pathname. Query and fragment are free form.
    """
    if not isinstance(url_str, str):
        return False
    if _ILLEGAL_URL_CHARS.search(url_str):
        return False
    try:
        uri = urlsplit(url_str)
        hostname = uri.hostname
    except ValueError:
        return False
    if uri.scheme not in ("http", "https"):
        return False
    if not hostname or not _HOSTNAME_RE.fullmatch(hostname):
        return False
    pathname = uri.path
    if pathname and not re.fullmatch(r"/+", pathname) and not _PATHNAME_RE.fullmatch(pathname):
        return False
    return True


def is_https_url(url_str: Any) -> bool:
    return is_url(url_str) and urlsplit(url_str).scheme == "https"


def is_localhost_or_https_url(url_str: Any) -> bool:
    """Localhost over plain http is accepted to ease local testing."""
    if not is_url(url_str):
        return False
    uri = urlsplit(url_str)
    return (uri.scheme == "http" and uri.hostname == "localhost") or uri.scheme == "https"


def is_email(email: Any) -> bool:
    return isinstance(email, str) and _EMAIL_RE.fullmatch(email) is not None


def is_provider_id(provider_id: Any) -> bool:
    # Quite lax on purpose.
    return is_non_empty_string(provider_id) and _PROVIDER_ID_RE.fullmatch(provider_id) is not None


def is_valid_color_string(value: Any) -> bool:
    return is_non_empty_string(value) and _COLOR_RE.fullmatch(value) is not None


def is_safe_string(value: Any) -> bool:
    """Limited character set, keeps HTML out of rendered labels."""
    return is_non_empty_string(value) and _SAFE_STRING_RE.fullmatch(value) is not None


def is_safe_wide_string(value: Any) -> bool:
    """Same as is_safe_string, also allowing Japanese characters and punctuation."""
    return is_non_empty_string(value) and _SAFE_WIDE_STRING_RE.fullmatch(value) is not None


# --- Schema-tree validation ---

class ValidationNode(BaseModel):
    """
    A single entry of a validation tree.

    `validator` checks a value found at this position, `nodes` describes the
    children one level down. A node without a validator only accepts an empty
    object as a leaf value.
    """

    model_config = ConfigDict(frozen=True)

    validator: Optional[Callable[[Any, str], None]] = None
    nodes: Optional[Dict[str, "ValidationNode"]] = None

    @model_validator(mode="after")
    def _check_not_empty(self) -> "ValidationNode":
        if self.validator is None and self.nodes is None:
            raise ValueError("A validation node requires a validator, nested nodes or both.")
        return self


ValidationNode.model_rebuild()

ValidationTree = Dict[str, ValidationNode]


def _require_empty_object(value: Any, key: str) -> None:
    if not is_empty_object(value):
        raise JsonValidationError(f'Invalid value for "{key}"')


def _join(path: Path) -> str:
    return ".".join(path)


def _with_array_marker(path: Path) -> Path:
    if not path:
        return (ARRAY_MARKER,)
    return path[:-1] + (path[-1] + ARRAY_MARKER,)


class JsonObjectValidator:
    """
    Validates a decoded JSON document against a validation tree.

    Keys of a tree level are exact keys, the wildcard '*' (any key) or
    'name[]' for arrays, whose elements are checked against that node.
    Given the tree:

        {
            "*": ValidationNode(nodes={
                "key1": ValidationNode(validator=must_be_string),
                "key2[]": ValidationNode(validator=must_be_string),
                "key3": ValidationNode(nodes={
                    "key4": ValidationNode(validator=must_be_boolean),
                }),
            }),
        }

    required fields can be enforced with dotted paths such as
    ['*.key1', '*.key2[]', '*.key3.key4'].

    The instance holds no per call state and can be shared.
    """

    def __init__(self, validation_tree: ValidationTree, required_fields: Sequence[str] = ()):
        """
        Args:
            validation_tree: The validation tree to use.
            required_fields: Dotted paths that must be reachable in validated documents.
        """
        self._validation_tree: ValidationTree = dict(validation_tree)
        self._required_fields: Tuple[str, ...] = tuple(required_fields)

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return self._required_fields

    def validate(self, obj: Any) -> None:
        """
        Raises JsonValidationError (or the error of a leaf validator) on the
        first violation found. Structure and types are checked before required fields.
        """
        self._validate_json(obj, ())
        self._check_required_fields(obj)

    def _check_required_fields(self, obj: Any) -> None:
        for required_field in self._required_fields:
            self._validate_required(obj, required_field.split("."), required_field)

    def _validate_required(self, obj: Any, components: List[str], path: str) -> None:
        if not components:
            return
        component, remaining = components[0], components[1:]
        if component == WILDCARD:
            children = list(obj.values()) if is_non_null_object(obj) else []
            if not children:
                raise JsonValidationError(f'Missing required field "{path}"')
            for child in children:
                self._validate_required(child, remaining, path)
        elif component.endswith(ARRAY_MARKER):
            prefix_key = component[: -len(ARRAY_MARKER)]
            entries = obj.get(prefix_key) if is_non_null_object(obj) else None
            if not is_array(entries):
                raise JsonValidationError(f'Missing required field "{path}"')
            for entry in entries:
                self._validate_required(entry, remaining, path)
        elif is_non_null_object(obj) and component in obj:
            self._validate_required(obj[component], remaining, path)
        else:
            raise JsonValidationError(f'Missing required field "{path}"')

    def _get_validator(self, path: Path) -> Optional[Validator]:
        """Returns the validator registered for the path, None when the path is unknown."""
        nodes: ValidationTree = self._validation_tree
        validator: Optional[Validator] = None
        for key in path:
            # The wildcard wins over an exact key defined at the same level.
            if WILDCARD in nodes:
                node = nodes[WILDCARD]
            elif key in nodes:
                node = nodes[key]
            else:
                return None
            validator = node.validator or _require_empty_object
            nodes = node.nodes or {}
        return validator

    def _lookup(self, path: Path) -> Validator:
        validator = self._get_validator(path)
        if validator is None:
            raise JsonValidationError(f'Invalid key or type "{_join(path)}"')
        return validator

    def _validate_json(self, obj: Any, path: Path) -> None:
        if is_non_empty_array(obj):
            element_path = _with_array_marker(path)
            for item in obj:
                self._validate_json(item, element_path)
        elif is_non_null_object(obj) and obj:
            for key, value in obj.items():
                self._validate_json(value, path + (key,))
        elif is_empty_object(obj):
            # The root itself is a structural node.
            if not path:
                return
            self._lookup(path)(obj, _join(path))
        elif is_array(obj):
            # Only the existence of a rule is checked for empty arrays.
            self._lookup(_with_array_marker(path))
        else:
            self._lookup(path)(obj, _join(path))
