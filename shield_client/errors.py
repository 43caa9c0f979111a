"""Shield error taxonomy and response classification.

Each client operation declares an ``ErrorMapping``: which HTTP statuses and
which body error codes map to a domain error on that path. Anything else is
surfaced as ``ShieldTransportError``.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

ENCRYPTION_PART_MISSING_CODE = "EC_MISSING"
OTP_MISSING_CODE = "OTP_MISSING"


class ShieldError(Exception):
    """Base class for all shield-client errors."""


class NoSecretFoundError(ShieldError):
    """No secret exists for the given identity."""


class SecretAlreadyExistsError(ShieldError):
    """A secret already exists for the given identity."""


class EncryptionPartMissingError(ShieldError):
    """The server requires an encryption part to process the share."""


class OTPRequiredError(ShieldError):
    """A one-time-passcode derived encryption session must be supplied."""


class ShieldTransportError(ShieldError):
    """Unexpected response or network failure.

    Attributes:
        status_code: HTTP status, None when no response was received
        code: Error code from the response body, if any
        body: Raw response body
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        body: str = "",
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.code = code
        self.body = body
        super().__init__(self.message)


@dataclass(frozen=True)
class ErrorMapping:
    """Domain errors raised for a failed response on one API path.

    Attributes:
        statuses: HTTP status to error class, checked first
        codes: Body error code to error class, checked second
    """

    statuses: Mapping[int, type[ShieldError]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    codes: Mapping[str, type[ShieldError]] = field(
        default_factory=lambda: MappingProxyType({})
    )


NO_ERROR_MAPPING = ErrorMapping()

_MESSAGES: dict[type[ShieldError], str] = {
    NoSecretFoundError: "No secret found for the given auth options",
    SecretAlreadyExistsError: "Secret already exists for the given auth options",
    EncryptionPartMissingError: "Encryption part missing",
    OTPRequiredError: "OTP required to access the secret",
}


def _json_object(body: str) -> dict[str, Any] | None:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def extract_error_code(body: str, known_codes: list[str] | None = None) -> str | None:
    """Return the error code carried by a response body.

    The structured ``code`` field of a JSON object body is authoritative.
    Bodies that are not JSON objects fall back to a substring search for
    ``known_codes``.

    Example:
        >>> extract_error_code('{"code": "EC_MISSING"}')
        'EC_MISSING'
        >>> extract_error_code("error: OTP_MISSING", ["OTP_MISSING"])
        'OTP_MISSING'
    """
    data = _json_object(body)
    if data is not None:
        code = data.get("code")
        return code if isinstance(code, str) else None
    for known in known_codes or []:
        if known in body:
            return known
    return None


def raise_for_shield_error(
    response: httpx.Response, mapping: ErrorMapping = NO_ERROR_MAPPING
) -> None:
    """Raise the domain error for a failed response.

    Does nothing for 2xx responses.

    Raises:
        ShieldError: Subclass from ``mapping`` or ShieldTransportError
    """
    if response.is_success:
        return

    if error_cls := mapping.statuses.get(response.status_code):
        raise error_cls(_MESSAGES.get(error_cls, error_cls.__doc__ or ""))

    body = response.text
    code = extract_error_code(body, list(mapping.codes))
    if code is not None and (error_cls := mapping.codes.get(code)):
        raise error_cls(_MESSAGES.get(error_cls, error_cls.__doc__ or ""))

    logger.error(
        "unexpected response",
        status_code=response.status_code,
        code=code,
        path=response.request.url.path,
    )
    try:
        reason = HTTPStatus(response.status_code).phrase
    except ValueError:
        reason = "Unknown"
    raise ShieldTransportError(
        f"unexpected response: {response.status_code} {reason}: {body}",
        status_code=response.status_code,
        code=code,
        body=body,
    )
