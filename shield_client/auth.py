"""Header resolution for Shield authentication options.

Auth variants are detected structurally, in a fixed order:

1. Openfort: the options carry ``openfort_oauth_token``
2. Custom: the options carry ``custom_token``

Only the first matching variant sets ``Authorization``. Options matching
neither variant (generic API key auth) get the base headers only; the server
decides whether that is enough.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

API_KEY_HEADER = "x-api-key"
AUTH_PROVIDER_HEADER = "x-auth-provider"
ORIGIN_HEADER = "Access-Control-Allow-Origin"
REQUEST_ID_HEADER = "x-request-id"
USER_ID_HEADER = "x-user-id"
API_SECRET_HEADER = "x-api-secret"
ENCRYPTION_PART_HEADER = "x-encryption-part"
ENCRYPTION_SESSION_HEADER = "x-encryption-session"
AUTHORIZATION_HEADER = "Authorization"
OPENFORT_PROVIDER_HEADER = "x-openfort-provider"
OPENFORT_TOKEN_TYPE_HEADER = "x-openfort-token-type"

# (attribute on the auth options, header it populates)
_OPTIONAL_HEADERS = (
    ("external_user_id", USER_ID_HEADER),
    ("api_secret", API_SECRET_HEADER),
    ("encryption_part", ENCRYPTION_PART_HEADER),
    ("encryption_session", ENCRYPTION_SESSION_HEADER),
)


def _value(auth: Any, name: str) -> str | None:
    value = getattr(auth, name, None)
    if not value:
        return None
    # StrEnum members render as their value
    return str(value)


def _variant_headers(auth: Any) -> dict[str, str]:
    # variants are detected by field presence; an empty token still counts
    if (token := getattr(auth, "openfort_oauth_token", None)) is not None:
        headers = {AUTHORIZATION_HEADER: f"Bearer {token}"}
        if provider := _value(auth, "openfort_oauth_provider"):
            headers[OPENFORT_PROVIDER_HEADER] = provider
        if token_type := _value(auth, "openfort_oauth_token_type"):
            headers[OPENFORT_TOKEN_TYPE_HEADER] = token_type
        return headers
    if (token := getattr(auth, "custom_token", None)) is not None:
        return {AUTHORIZATION_HEADER: f"Bearer {token}"}
    return {}


def resolve_headers(
    auth: Any,
    *,
    api_key: str,
    base_url: str,
    request_id: str | None = None,
) -> Mapping[str, str]:
    """Resolve the request headers for the given auth options.

    Args:
        auth: Auth options (any ShieldAuthOptions variant)
        api_key: Client-level API key, overridden by ``auth.api_key``
        base_url: Shield base URL, sent as the origin header
        request_id: Optional request id for server-side tracing

    Returns:
        Read-only header mapping

    Example:
        >>> from shield_client.models import CustomAuthOptions
        >>> headers = resolve_headers(
        ...     CustomAuthOptions(custom_token="tok"),
        ...     api_key="pk",
        ...     base_url="https://shield.openfort.io",
        ... )
        >>> headers["Authorization"]
        'Bearer tok'
    """
    headers = {
        API_KEY_HEADER: _value(auth, "api_key") or api_key,
        AUTH_PROVIDER_HEADER: _value(auth, "auth_provider") or "",
        ORIGIN_HEADER: base_url,
    }
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id
    for attribute, header in _OPTIONAL_HEADERS:
        if value := _value(auth, attribute):
            headers[header] = value
    headers |= _variant_headers(auth)
    return MappingProxyType(headers)
