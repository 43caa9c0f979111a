"""Shield API client with hook system.

Composes the auth resolver, the retrying transport and the error classifier
into the public Shield operations. The client is stateless apart from its
immutable configuration and is safe for concurrent use.
"""

import contextvars
import time
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, Generic, Self, TypeVar
from urllib.parse import quote

import httpx
import structlog

from shield_client.auth import resolve_headers
from shield_client.config import DEFAULT_BASE_URL, DeleteMissingPolicy, ShieldSettings
from shield_client.errors import (
    ENCRYPTION_PART_MISSING_CODE,
    NO_ERROR_MAPPING,
    OTP_MISSING_CODE,
    EncryptionPartMissingError,
    ErrorMapping,
    NoSecretFoundError,
    OTPRequiredError,
    SecretAlreadyExistsError,
    raise_for_shield_error,
)
from shield_client.hooks import Hooks, invoke_with_hooks
from shield_client.metrics import (
    shield_request,
    shield_request_duration,
    shield_request_errors,
)
from shield_client.models import RecoveryMethod, Share, ShieldAuthOptions
from shield_client.transport import (
    MAX_ATTEMPTS,
    RETRY_BACKOFF,
    TIMEOUT,
    ShieldTransport,
)

logger = structlog.get_logger(__name__)

FOUND_STATUS = "found"

READ_ERRORS = ErrorMapping(
    statuses=MappingProxyType({404: NoSecretFoundError}),
    codes=MappingProxyType({
        ENCRYPTION_PART_MISSING_CODE: EncryptionPartMissingError,
        OTP_MISSING_CODE: OTPRequiredError,
    }),
)
CREATE_ERRORS = ErrorMapping(
    statuses=MappingProxyType({409: SecretAlreadyExistsError}),
    codes=MappingProxyType({ENCRYPTION_PART_MISSING_CODE: EncryptionPartMissingError}),
)
UPDATE_ERRORS = ErrorMapping(
    codes=MappingProxyType({ENCRYPTION_PART_MISSING_CODE: EncryptionPartMissingError}),
)


def _share_path(reference: str) -> str:
    """Path of the share under ``reference``, escaped as a single segment."""
    # quote() keeps dots, and httpx would normalize these away
    if reference in {".", ".."}:
        raise ValueError(f"invalid share reference: {reference!r}")
    return f"/shares/{quote(reference, safe='')}"


# Tuple stack to support concurrent and nested calls within one context
_latency_tracker: contextvars.ContextVar[tuple[float, ...]] = contextvars.ContextVar(
    f"{__name__}.latency_tracker", default=()
)


@dataclass(frozen=True)
class ShieldApiCallContext:
    """Context information passed to API call hooks.

    Attributes:
        method: API method name (e.g., "shares.get")
        verb: HTTP verb (e.g., "GET")
        id: Shield base URL
    """

    method: str
    verb: str
    id: str


def _metrics_hook(context: ShieldApiCallContext) -> None:
    """Built-in Prometheus metrics hook."""
    shield_request.labels(context.method, context.verb).inc()


def _error_metrics_hook(context: ShieldApiCallContext) -> None:
    shield_request_errors.labels(context.method, context.verb).inc()


def _latency_start_hook(_context: ShieldApiCallContext) -> None:
    """Built-in hook to start latency measurement."""
    _latency_tracker.set((*_latency_tracker.get(), time.perf_counter()))


def _latency_end_hook(context: ShieldApiCallContext) -> None:
    """Built-in hook to record latency measurement."""
    stack = _latency_tracker.get()
    start_time = stack[-1]
    _latency_tracker.set(stack[:-1])
    duration = time.perf_counter() - start_time
    shield_request_duration.labels(context.method, context.verb).observe(duration)


def _request_log_hook(context: ShieldApiCallContext) -> None:
    """Built-in hook for logging API requests."""
    logger.debug("API request", method=context.method, verb=context.verb, id=context.id)


BUILTIN_HOOKS = Hooks(
    pre_hooks=[_metrics_hook, _request_log_hook, _latency_start_hook],
    post_hooks=[_latency_end_hook],
    error_hooks=[_error_metrics_hook],
)


T = TypeVar("T")


class EncryptionMethodLookup(Mapping[str, T], Generic[T]):
    """Read-only result of a bulk encryption method lookup.

    Only keys the server reported as found are present. A missing key means
    "not found" and is never an error.

    Example:
        >>> methods = await client.get_encryption_methods_by_owner_id(auth, ["a", "b"])
        >>> methods.lookup("b") is None
        True
    """

    def __init__(self, found: Mapping[str, T]) -> None:
        self._found = dict(found)

    def lookup(self, key: str) -> T | None:
        return self._found.get(key)

    def __getitem__(self, key: str) -> T:
        return self._found[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._found)

    def __len__(self) -> int:
        return len(self._found)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._found!r})"


class ShieldClient:
    """Stateless Shield API client with hook system.

    Hook System:
    - Always includes built-in hooks (metrics, logging, latency)
    - Supports additional custom hooks via the hooks parameter
    - Hooks receive ShieldApiCallContext with method, verb, id

    Example:
        >>> async with ShieldClient(api_key="pk_...") as client:
        ...     share = await client.get_secret(
        ...         OpenfortAuthOptions(openfort_oauth_token="...")
        ...     )
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
        retry_backoff: float = RETRY_BACKOFF,
        delete_missing_policy: DeleteMissingPolicy = DeleteMissingPolicy.RAISE,
        hooks: Hooks | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Shield API client.

        Args:
            api_key: Publishable API key, sent unless the auth options carry one
            base_url: Shield base URL (default: https://shield.openfort.io)
            timeout: API request timeout in seconds (default: 30)
            max_attempts: Attempts per request including the first (default: 3)
            retry_backoff: Delay before the first retry in seconds (default: 0.5)
            delete_missing_policy: Whether deleting an absent share raises
            hooks: Optional custom hooks merged after the built-in hooks
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.delete_missing_policy = delete_missing_policy
        self._transport = ShieldTransport(
            base_url=base_url,
            timeout=timeout,
            max_attempts=max_attempts,
            retry_backoff=retry_backoff,
            transport=transport,
        )
        self.base_url = self._transport.base_url
        self._hooks = BUILTIN_HOOKS.merge(hooks)

    @classmethod
    def from_settings(
        cls,
        settings: ShieldSettings,
        hooks: Hooks | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_attempts=settings.max_attempts,
            retry_backoff=settings.retry_backoff,
            delete_missing_policy=settings.delete_missing_policy,
            hooks=hooks,
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _call(
        self,
        method: str,
        verb: str,
        path: str,
        auth: ShieldAuthOptions,
        request_id: str | None,
        errors: ErrorMapping = NO_ERROR_MAPPING,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        accepted_statuses: frozenset[int] = frozenset(),
    ) -> httpx.Response:
        """Send one API call and raise the mapped error on failure.

        Responses with a status in ``accepted_statuses`` are returned as-is.
        """
        headers = resolve_headers(
            auth, api_key=self.api_key, base_url=self.base_url, request_id=request_id
        )
        with invoke_with_hooks(
            ShieldApiCallContext(method=method, verb=verb, id=self.base_url),
            pre_hooks=self._hooks.pre_hooks,
            post_hooks=self._hooks.post_hooks,
            error_hooks=self._hooks.error_hooks,
        ):
            response = await self._transport.request(
                verb, path, headers=headers, params=params, json=json
            )
            if response.status_code not in accepted_statuses:
                raise_for_shield_error(response, errors)
        return response

    async def get_secret(
        self, auth: ShieldAuthOptions, request_id: str | None = None
    ) -> Share:
        """Fetch the caller's own share.

        Raises:
            NoSecretFoundError: No share exists for the identity
            EncryptionPartMissingError: The share needs an encryption part
            OTPRequiredError: The share needs an OTP encryption session
        """
        response = await self._call(
            "shares.get", "GET", "/shares", auth, request_id, READ_ERRORS
        )
        return Share.from_payload(response.json())

    async def get_secret_by_reference(
        self, auth: ShieldAuthOptions, reference: str, request_id: str | None = None
    ) -> Share:
        """Fetch the caller's share stored under ``reference``.

        Raises the same errors as get_secret.
        """
        response = await self._call(
            "shares.get_by_reference",
            "GET",
            _share_path(reference),
            auth,
            request_id,
            READ_ERRORS,
        )
        return Share.from_payload(response.json())

    async def keychain(
        self,
        auth: ShieldAuthOptions,
        reference: str | None = None,
        request_id: str | None = None,
    ) -> list[Share]:
        """List all shares of the identity in server order.

        Args:
            auth: Auth options
            reference: Only return shares stored under this reference
            request_id: Optional request id
        """
        response = await self._call(
            "keychain.list",
            "GET",
            "/keychain",
            auth,
            request_id,
            params={"reference": reference} if reference else None,
        )
        return [Share.from_payload(s) for s in response.json().get("shares") or []]

    async def _create_secret(
        self,
        method: str,
        path: str,
        share: Share,
        auth: ShieldAuthOptions,
        request_id: str | None,
    ) -> None:
        await self._call(
            method,
            "POST",
            path,
            auth,
            request_id,
            CREATE_ERRORS,
            json=share.to_payload(auth),
        )

    async def store_secret(
        self, share: Share, auth: ShieldAuthOptions, request_id: str | None = None
    ) -> None:
        """Store a new share.

        Raises:
            SecretAlreadyExistsError: A share already exists for the identity
            EncryptionPartMissingError: The server needs an encryption part
        """
        await self._create_secret("shares.create", "/shares", share, auth, request_id)

    async def pre_register(
        self, share: Share, auth: ShieldAuthOptions, request_id: str | None = None
    ) -> None:
        """Pre-register a share for a user on behalf of the project.

        Raises the same errors as store_secret.
        """
        await self._create_secret(
            "shares.preregister", "/admin/preregister", share, auth, request_id
        )

    async def update_secret(
        self, auth: ShieldAuthOptions, share: Share, request_id: str | None = None
    ) -> None:
        """Replace the payload of an existing share.

        Raises:
            EncryptionPartMissingError: The server needs an encryption part
        """
        await self._call(
            "shares.update",
            "PUT",
            "/shares",
            auth,
            request_id,
            UPDATE_ERRORS,
            json=share.to_payload(auth),
        )

    async def delete_secret(
        self,
        auth: ShieldAuthOptions,
        request_id: str | None = None,
        reference: str | None = None,
    ) -> None:
        """Delete the caller's share, optionally the one under ``reference``.

        A 404 is treated as success when the client was created with
        DeleteMissingPolicy.IGNORE and raises ShieldTransportError otherwise.
        """
        path = _share_path(reference) if reference else "/shares"
        accepted: frozenset[int] = frozenset()
        if self.delete_missing_policy == DeleteMissingPolicy.IGNORE:
            accepted = frozenset({HTTPStatus.NOT_FOUND})
        response = await self._call(
            "shares.delete",
            "DELETE",
            path,
            auth,
            request_id,
            accepted_statuses=accepted,
        )
        if response.status_code == HTTPStatus.NOT_FOUND:
            logger.info("share already absent", path=path)

    async def _encryption_method_bulk(
        self,
        method: str,
        path: str,
        field: str,
        auth: ShieldAuthOptions,
        keys: Sequence[str],
        request_id: str | None,
    ) -> dict[str, RecoveryMethod]:
        response = await self._call(
            method, "POST", path, auth, request_id, json={field: list(keys)}
        )
        encryption_types: dict[str, Any] = (
            response.json().get("encryption_types") or {}
        )
        return {
            key: RecoveryMethod.from_payload(info)
            for key, info in encryption_types.items()
            if info.get("status") == FOUND_STATUS
        }

    async def get_encryption_methods_by_signer_references_detailed(
        self,
        auth: ShieldAuthOptions,
        signers: Sequence[str],
        request_id: str | None = None,
    ) -> EncryptionMethodLookup[RecoveryMethod]:
        """Look up the recovery method of each signer reference.

        References without a share are absent from the result.
        """
        return EncryptionMethodLookup(
            await self._encryption_method_bulk(
                "shares.encryption.reference.bulk",
                "/shares/encryption/reference/bulk",
                "references",
                auth,
                signers,
                request_id,
            )
        )

    async def get_encryption_methods_by_owner_id_detailed(
        self,
        auth: ShieldAuthOptions,
        users: Sequence[str],
        request_id: str | None = None,
    ) -> EncryptionMethodLookup[RecoveryMethod]:
        """Look up the recovery method of each owner (user id).

        Owners without a share are absent from the result.
        """
        return EncryptionMethodLookup(
            await self._encryption_method_bulk(
                "shares.encryption.user.bulk",
                "/shares/encryption/user/bulk",
                "user_ids",
                auth,
                users,
                request_id,
            )
        )

    async def get_encryption_methods_by_signer_references(
        self,
        auth: ShieldAuthOptions,
        signers: Sequence[str],
        request_id: str | None = None,
    ) -> EncryptionMethodLookup[str]:
        """Like the detailed variant, returning only the method tag."""
        methods = await self.get_encryption_methods_by_signer_references_detailed(
            auth, signers, request_id
        )
        return EncryptionMethodLookup({k: m.method for k, m in methods.items()})

    async def get_encryption_methods_by_owner_id(
        self,
        auth: ShieldAuthOptions,
        users: Sequence[str],
        request_id: str | None = None,
    ) -> EncryptionMethodLookup[str]:
        """Like the detailed variant, returning only the method tag."""
        methods = await self.get_encryption_methods_by_owner_id_detailed(
            auth, users, request_id
        )
        return EncryptionMethodLookup({k: m.method for k, m in methods.items()})
