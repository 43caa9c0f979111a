"""Shield API client and models.

Async client for the Shield secret-custody service: stores, retrieves,
updates and deletes secret shares bound to an authenticated identity, and
resolves the recovery method protecting a share.

Layers:
- resolve_headers: Auth options to request headers
- ShieldTransport: HTTP with retry and exponential backoff
- raise_for_shield_error: Failed responses to typed errors
- ShieldClient: Public operations

Example:
    >>> from shield_client import OpenfortAuthOptions, ShieldClient
    >>> async with ShieldClient(api_key="pk_...") as client:
    ...     share = await client.get_secret(
    ...         OpenfortAuthOptions(openfort_oauth_token="...")
    ...     )
"""

from shield_client.auth import resolve_headers
from shield_client.client import (
    EncryptionMethodLookup,
    ShieldApiCallContext,
    ShieldClient,
)
from shield_client.config import DeleteMissingPolicy, ShieldSettings
from shield_client.errors import (
    EncryptionPartMissingError,
    NoSecretFoundError,
    OTPRequiredError,
    SecretAlreadyExistsError,
    ShieldError,
    ShieldTransportError,
    raise_for_shield_error,
)
from shield_client.hooks import Hooks
from shield_client.models import (
    CustomAuthOptions,
    EncryptionParameters,
    Entropy,
    OpenfortAuthOptions,
    OpenfortOAuthProvider,
    OpenfortOAuthTokenType,
    PasskeyEnv,
    PasskeyReference,
    RecoveryMethod,
    RecoveryMethodDetails,
    Share,
    ShieldAuthOptions,
    ShieldAuthProvider,
)
from shield_client.transport import ShieldTransport

__all__ = [
    "CustomAuthOptions",
    "DeleteMissingPolicy",
    "EncryptionMethodLookup",
    "EncryptionParameters",
    "EncryptionPartMissingError",
    "Entropy",
    "Hooks",
    "NoSecretFoundError",
    "OTPRequiredError",
    "OpenfortAuthOptions",
    "OpenfortOAuthProvider",
    "OpenfortOAuthTokenType",
    "PasskeyEnv",
    "PasskeyReference",
    "RecoveryMethod",
    "RecoveryMethodDetails",
    "SecretAlreadyExistsError",
    "Share",
    "ShieldApiCallContext",
    "ShieldAuthOptions",
    "ShieldAuthProvider",
    "ShieldClient",
    "ShieldError",
    "ShieldSettings",
    "ShieldTransport",
    "ShieldTransportError",
    "raise_for_shield_error",
    "resolve_headers",
]
