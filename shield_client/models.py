"""Pydantic models for the Shield API.

Model conventions:
- All models use Pydantic BaseModel
- Immutable with frozen=True (safe to share between concurrent calls)
- Accept both snake_case names and the camelCase aliases used by other Shield SDKs
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNKNOWN = "unknown"


class ShieldAuthProvider(StrEnum):
    """Authentication provider announced in the ``x-auth-provider`` header."""

    OPENFORT = "openfort"
    CUSTOM = "custom"


class OpenfortOAuthProvider(StrEnum):
    """Third-party provider behind an Openfort OAuth token."""

    ACCELBYTE = "accelbyte"
    FIREBASE = "firebase"
    APPLE_NATIVE = "apple_native"
    GOOGLE_NATIVE = "google_native"
    LOOTLOCKER = "lootlocker"
    SUPABASE = "supabase"
    PLAYFAB = "playfab"
    CUSTOM = "custom"
    OIDC = "oidc"


class OpenfortOAuthTokenType(StrEnum):
    ID_TOKEN = "idToken"
    CUSTOM_TOKEN = "customToken"


class Entropy(StrEnum):
    """Party that contributed entropy to a share."""

    NONE = "none"
    USER = "user"
    PROJECT = "project"
    PASSKEY = "passkey"


class _ShieldModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel
    )


# --- Auth options ---


class ShieldAuthOptions(_ShieldModel):
    """Authentication options shared by all variants.

    Used as-is for the generic API-key variant. The Openfort and custom
    variants add their token fields; the resolver detects them by the
    presence of those fields, not by class.

    Attributes:
        auth_provider: Value of the ``x-auth-provider`` header
        external_user_id: Caller-side user id (``x-user-id``)
        api_key: Overrides the client-level API key
        api_secret: Project API secret (``x-api-secret``)
        encryption_part: Encryption part proving possession of a factor
        encryption_session: OTP-derived encryption session
    """

    # variant token fields must never be silently dropped
    model_config = ConfigDict(extra="forbid")

    auth_provider: ShieldAuthProvider | str
    external_user_id: str | None = None
    api_key: str | None = None
    api_secret: str | None = None
    encryption_part: str | None = None
    encryption_session: str | None = None


class OpenfortAuthOptions(ShieldAuthOptions):
    auth_provider: ShieldAuthProvider | str = ShieldAuthProvider.OPENFORT
    openfort_oauth_token: str = Field(..., alias="openfortOAuthToken")
    openfort_oauth_provider: OpenfortOAuthProvider | str | None = Field(
        None, alias="openfortOAuthProvider"
    )
    openfort_oauth_token_type: OpenfortOAuthTokenType | str | None = Field(
        None, alias="openfortOAuthTokenType"
    )


class CustomAuthOptions(ShieldAuthOptions):
    auth_provider: ShieldAuthProvider | str = ShieldAuthProvider.CUSTOM
    custom_token: str


# --- Shares ---


class EncryptionParameters(_ShieldModel):
    """Opaque KDF parameters stored alongside a share.

    Attributes:
        salt: KDF salt
        iterations: KDF iteration count
        length: Derived key length
        digest: Digest algorithm name
    """

    salt: str
    iterations: int
    length: int
    digest: str


class PasskeyEnv(_ShieldModel):
    """Environment a passkey was created in.

    Fields reported as ``"unknown"`` by the server are dropped.
    """

    name: str | None = None
    os: str | None = None
    os_version: str | None = None
    device: str | None = None

    @field_validator("name", "os", "os_version", "device", mode="before")
    @classmethod
    def _drop_unknown(cls, value: Any) -> Any:
        return None if value == UNKNOWN else value

    def to_payload(self) -> dict[str, str]:
        return {
            k: v
            for k, v in {
                "name": self.name,
                "os": self.os,
                "os_version": self.os_version,
                "device": self.device,
            }.items()
            if v is not None
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None) -> "PasskeyEnv | None":
        if not data:
            return None
        return cls(
            name=data.get("name"),
            os=data.get("os"),
            os_version=data.get("os_version"),
            device=data.get("device"),
        )


class PasskeyReference(_ShieldModel):
    passkey_id: str
    passkey_env: PasskeyEnv | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"passkey_id": self.passkey_id}
        if self.passkey_env is not None:
            payload["passkey_env"] = self.passkey_env.to_payload()
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any] | None) -> "PasskeyReference | None":
        if not data or not data.get("passkey_id"):
            return None
        return cls(
            passkey_id=data["passkey_id"],
            passkey_env=PasskeyEnv.from_payload(data.get("passkey_env")),
        )


class Share(_ShieldModel):
    """A secret share and the metadata describing how it was derived.

    Attributes:
        secret: Opaque secret payload, never interpreted by this package
        entropy: Who contributed entropy to the secret
        encryption_parameters: KDF parameters when the secret is user-encrypted
        keychain_id: Keychain the share belongs to (server-assigned)
        reference: Caller-chosen identifier among the identity's shares
        passkey_reference: Passkey protecting the share, if any
    """

    secret: str
    entropy: Entropy
    encryption_parameters: EncryptionParameters | None = None
    keychain_id: str | None = None
    reference: str | None = None
    passkey_reference: PasskeyReference | None = None

    def to_payload(self, auth: ShieldAuthOptions) -> dict[str, Any]:
        """Build the request body used by store, preregister and update."""
        params = self.encryption_parameters
        payload: dict[str, Any] = {
            "secret": self.secret,
            "entropy": self.entropy.value,
            "encryption_part": auth.encryption_part or "",
            "encryption_session": auth.encryption_session or "",
            "reference": self.reference or "",
            "keychain_id": self.keychain_id or "",
        }
        if params is not None:
            payload.update(
                salt=params.salt,
                iterations=params.iterations,
                length=params.length,
                digest=params.digest,
            )
        if self.passkey_reference is not None:
            payload["passkey_reference"] = self.passkey_reference.to_payload()
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Share":
        """Map a share object returned by the server."""
        encryption_parameters = None
        if data.get("salt"):
            encryption_parameters = EncryptionParameters(
                salt=data["salt"],
                iterations=data["iterations"],
                length=data["length"],
                digest=data["digest"],
            )
        return cls(
            secret=data["secret"],
            entropy=data["entropy"],
            encryption_parameters=encryption_parameters,
            keychain_id=data.get("keychain_id") or None,
            reference=data.get("reference") or None,
            passkey_reference=PasskeyReference.from_payload(
                data.get("passkey_reference")
            ),
        )


# --- Recovery methods ---


class RecoveryMethodDetails(_ShieldModel):
    passkey_id: str
    passkey_env: PasskeyEnv | None = None


class RecoveryMethod(_ShieldModel):
    """How a share's secret is protected.

    Attributes:
        method: Encryption type tag reported by the server (e.g. "passkey")
        details: Passkey metadata, only for passkey-protected shares
    """

    method: str
    details: RecoveryMethodDetails | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "RecoveryMethod":
        details = None
        if data.get("passkey_id"):
            details = RecoveryMethodDetails(
                passkey_id=data["passkey_id"],
                passkey_env=PasskeyEnv.from_payload(data.get("passkey_env")),
            )
        return cls(method=data["encryption_type"], details=details)
