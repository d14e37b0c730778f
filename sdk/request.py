"""Request descriptors — the transport-neutral form of one API call.

A :class:`RequestDescriptor` names the endpoint, the HTTP verb and the body
encoding.  It is produced by :meth:`sdk.methods.Method.into_request` and
consumed by :class:`sdk.client.BotClient`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from sdk.models import InputFile


class RequestMethod(str, Enum):
    """HTTP verb of a request."""

    GET = "GET"
    POST = "POST"


@dataclass(frozen=True)
class EmptyBody:
    """No request body."""


@dataclass(frozen=True)
class JsonBody:
    """A JSON-encoded body."""

    data: bytes


@dataclass(frozen=True)
class FormBody:
    """A multipart form body.

    *fields* holds plain text parts; *files* maps a field name to an
    :class:`~sdk.models.InputFile`.
    """

    fields: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, InputFile] = field(default_factory=dict)

    @classmethod
    def from_values(cls, values: Dict[str, Any]) -> "FormBody":
        """Split *values* into text and file parts.

        Strings are sent as-is, :class:`InputFile` values become file parts and
        everything else (numbers, booleans, nested objects) is JSON-encoded.
        """
        fields: Dict[str, str] = {}
        files: Dict[str, InputFile] = {}
        for key, value in values.items():
            if isinstance(value, InputFile):
                files[key] = value
            elif isinstance(value, str):
                fields[key] = value
            else:
                fields[key] = json.dumps(value)
        return cls(fields=fields, files=files)

    def to_multipart(self) -> Dict[str, Tuple[Optional[str], Any, Optional[str]]]:
        """Return the ``files=`` mapping understood by :mod:`requests`."""
        parts: Dict[str, Tuple[Optional[str], Any, Optional[str]]] = {
            key: (None, value, None) for key, value in self.fields.items()
        }
        for key, input_file in self.files.items():
            parts[key] = (input_file.file_name, input_file.data, input_file.mime_type)
        return parts


RequestBody = Union[EmptyBody, JsonBody, FormBody]


@dataclass(frozen=True)
class RequestDescriptor:
    """Description of one outbound API call.

    Attributes:
        endpoint: API method name, e.g. ``"getUpdates"``.
        method: HTTP verb.
        body: Body encoding and payload.
        timeout: Optional per-request timeout hint in seconds (long polling
            needs more than the client default).
    """

    endpoint: str
    method: RequestMethod = RequestMethod.POST
    body: RequestBody = field(default_factory=EmptyBody)
    timeout: Optional[float] = None

    @classmethod
    def empty(cls, endpoint: str) -> "RequestDescriptor":
        """A body-less GET request."""
        return cls(endpoint=endpoint, method=RequestMethod.GET)

    @classmethod
    def json(cls, endpoint: str, data: bytes, timeout: Optional[float] = None) -> "RequestDescriptor":
        """A POST request with a JSON body."""
        return cls(endpoint=endpoint, method=RequestMethod.POST, body=JsonBody(data), timeout=timeout)

    @classmethod
    def form(cls, endpoint: str, form: FormBody) -> "RequestDescriptor":
        """A POST request with a multipart body."""
        return cls(endpoint=endpoint, method=RequestMethod.POST, body=form)

    def build_url(self, base_url: str, token: str) -> str:
        """Return ``{base_url}/bot{token}/{endpoint}``."""
        return f"{base_url.rstrip('/')}/bot{token}/{self.endpoint}"
