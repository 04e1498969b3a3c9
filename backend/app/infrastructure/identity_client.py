"""Resilient Identity Client — hosted auth service wrapper with token verification, retry, and error mapping.

Invariants:
    - Access tokens verified locally (HS256 + audience), never by a network round-trip
    - Transient errors (5xx, connection, timeout): retried with exponential backoff + jitter
    - Client errors (4xx): immediate failure, no retry
    - Rejected credentials/tokens -> AuthenticationError; everything else -> IdentityServiceError
    - create_user: 409, or 422 naming an existing user -> ConflictError; other 422 -> InputValidationError
    - Admin endpoints authenticate with the service key; sign-out with the user's own token

Design Decisions:
    - httpx.AsyncClient over a vendor SDK: the admin REST surface used here is four calls
    - transport injectable: tests swap in httpx.MockTransport without patching
    - Singleton initialized on startup, closed on shutdown (same lifecycle as db_manager)
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import AsyncGenerator
from uuid import UUID

import httpx
import jwt

from app.core.errors import (
    AuthenticationError, ConflictError, ErrorContext, IdentityServiceError,
    InputValidationError,
)

logger = logging.getLogger(__name__)

_CREDENTIAL_REJECTED = (400, 401, 403)
_ALREADY_EXISTS_CODES = ("email_exists", "user_already_exists")


@dataclass(frozen=True)
class AuthUser:
    """Identity service user as seen by this API."""
    id: UUID
    email: str | None = None


@dataclass(frozen=True)
class TokenGrant:
    """Result of a password sign-in."""
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    user: AuthUser


def _user_from_payload(payload: dict) -> AuthUser:
    return AuthUser(id=UUID(str(payload["id"])), email=payload.get("email"))


class IdentityClient:
    """Admin + session calls against the hosted identity service."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        jwt_secret: str,
        jwt_audience: str = "authenticated",
        timeout_seconds: float = 10,
        max_retries: int = 2,
        base_delay_ms: int = 200,
        max_delay_ms: int = 5_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/auth/v1",
            timeout=timeout_seconds,
            headers={"apikey": service_key},
            transport=transport,
        )
        self._service_key = service_key
        self._jwt_secret = jwt_secret
        self.jwt_audience = jwt_audience
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    # ─── Tokens ──────────────────────────────────────────────────

    def verify_access_token(self, token: str) -> AuthUser:
        """Decode and validate a session access token. Raises AuthenticationError."""
        try:
            claims = jwt.decode(
                token, self._jwt_secret,
                algorithms=["HS256"], audience=self.jwt_audience,
                options={"require": ["sub", "exp"]},
            )
            return AuthUser(id=UUID(claims["sub"]), email=claims.get("email"))
        except (jwt.PyJWTError, ValueError) as e:
            raise AuthenticationError(f"Invalid access token: {e}")

    # ─── Admin ───────────────────────────────────────────────────

    async def create_user(
        self, email: str, password: str, email_confirm: bool = True,
    ) -> AuthUser:
        """Create an identity user. Duplicate email -> ConflictError, rejected input -> InputValidationError."""
        try:
            response = await self._request(
                "POST", "/admin/users", "create_user",
                json={
                    "email": email,
                    "password": password,
                    "email_confirm": email_confirm,
                },
                headers=self._admin_headers(),
            )
        except IdentityServiceError as e:
            if _is_existing_user(e):
                raise ConflictError(f"A user with email {email} already exists")
            if e.status_code == 422:
                raise InputValidationError(e.detail, "user")
            raise
        user = _user_from_payload(response.json())
        logger.info("Identity user created", extra={"user_id": str(user.id)})
        return user

    async def delete_user(self, user_id: UUID) -> None:
        await self._request(
            "DELETE", f"/admin/users/{user_id}", "delete_user",
            headers=self._admin_headers(),
        )
        logger.info("Identity user deleted", extra={"user_id": str(user_id)})

    # ─── Sessions ────────────────────────────────────────────────

    async def sign_in_with_password(self, email: str, password: str) -> TokenGrant:
        try:
            response = await self._request(
                "POST", "/token", "sign_in",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except IdentityServiceError as e:
            if e.status_code in _CREDENTIAL_REJECTED:
                raise AuthenticationError()
            raise
        body = response.json()
        return TokenGrant(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            expires_in=body.get("expires_in"),
            user=_user_from_payload(body["user"]),
        )

    async def sign_out(self, access_token: str) -> None:
        await self._request(
            "POST", "/logout", "sign_out",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    # ─── Transport ───────────────────────────────────────────────

    async def _request(
        self, method: str, path: str, operation: str, **kwargs,
    ) -> httpx.Response:
        """Send with retry on transient failures; raise mapped errors otherwise."""
        context = ErrorContext(debug_info={"path": path})
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.http.request(method, path, **kwargs)
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, operation, context)
                continue

            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, operation, context,
                    status_code=response.status_code,
                )
                continue
            if response.status_code >= 400:
                raise IdentityServiceError(
                    _error_message(response), operation,
                    status_code=response.status_code, context=context,
                    error_code=_error_code(response),
                )
            return response
        # unreachable: the final attempt either returns or raises
        raise IdentityServiceError("retries exhausted", operation, context=context)

    async def _handle_transient_error(
        self,
        e: Exception | str,
        attempt: int,
        operation: str,
        context: ErrorContext,
        status_code: int | None = None,
    ) -> None:
        if attempt >= self.max_retries:
            raise IdentityServiceError(
                f"Transient failure after {self.max_retries} retries: {e}",
                operation, status_code=status_code, context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Identity {operation} transient error, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _admin_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._service_key}"}


def _error_message(response: httpx.Response) -> str:
    """Best human-readable message from an identity service error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


def _error_code(response: httpx.Response) -> str | None:
    """Machine-readable error code from an identity service error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error_code"), str):
        return body["error_code"]
    return None


def _is_existing_user(e: IdentityServiceError) -> bool:
    """409 always means a duplicate; 422 only when the body says the user exists."""
    if e.status_code == 409:
        return True
    if e.status_code != 422:
        return False
    return e.error_code in _ALREADY_EXISTS_CODES or "already" in e.detail.lower()


# Singleton (initialized on startup)
identity_client: IdentityClient | None = None


def init_identity(base_url: str, service_key: str, jwt_secret: str, **kwargs) -> IdentityClient:
    global identity_client
    identity_client = IdentityClient(base_url, service_key, jwt_secret, **kwargs)
    return identity_client


async def close_identity() -> None:
    global identity_client
    if identity_client:
        await identity_client.aclose()
        identity_client = None


async def get_identity_client() -> AsyncGenerator[IdentityClient, None]:
    """FastAPI dependency for the identity client."""
    if not identity_client:
        raise RuntimeError("Identity client not initialized")
    yield identity_client
