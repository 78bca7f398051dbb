"""
Credential sign-in and session tokens.

`Authenticator.sign_in()` is the authentication collaborator: it dispatches
to a named provider and raises AuthError with a discriminable type on
failure. `authenticate()` is the login form action that turns those errors
into the message shown under the form.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Protocol

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError

from invoicedesk.domain.validation import CREDENTIAL_FIELDS, Credentials, Rejected, decode, extract_fields
from invoicedesk.infrastructure import queries
from invoicedesk.infrastructure.database import Database, UserRecord

logger = logging.getLogger(__name__)

_pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"
SESSION_COOKIE = "invoicedesk_session"
DEFAULT_REDIRECT = "/dashboard"


class AuthErrorType(str, Enum):
    """Failure kinds raised by sign-in."""
    CREDENTIALS_SIGNIN = "CredentialsSignin"
    CALLBACK_ROUTE_ERROR = "CallbackRouteError"
    CONFIGURATION = "Configuration"
    ACCESS_DENIED = "AccessDenied"


class AuthError(Exception):
    """Sign-in failure with a `type` callers can switch on."""

    def __init__(self, type: AuthErrorType, message: str = "") -> None:
        super().__init__(message or type.value)
        self.type = type


@dataclass(frozen=True)
class SignedIn:
    """Successful sign-in: set `token` as the session and go to `redirect_path`."""
    token: str
    redirect_path: str


class Provider(Protocol):
    async def authorize(self, credentials: Mapping[str, Any]) -> UserRecord: ...


def hash_password(raw: str) -> str:
    return _pwd_ctx.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    try:
        return _pwd_ctx.verify(raw, hashed)
    except ValueError:
        # Unrecognized hash format stored for this user
        return False


def mint_session_token(user_id: str, secret: str, ttl_minutes: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_session_token(token: str, secret: str) -> str | None:
    """Return the user id of a valid, unexpired token, else None."""
    try:
        data = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    subject = data.get("sub")
    return subject if isinstance(subject, str) and subject else None


def safe_redirect(path: Any) -> str:
    """Only same-site absolute paths are honoured as post-sign-in targets."""
    if not isinstance(path, str) or not path.startswith("/"):
        return DEFAULT_REDIRECT
    # Browsers read backslashes as slashes, so "/\\host" is protocol-relative
    if path.startswith("//") or "\\" in path or any(ord(c) < 0x20 for c in path):
        return DEFAULT_REDIRECT
    return path


class CredentialsProvider:
    """
    Email and password sign-in against the users table.

    Any credential problem (bad shape, unknown email, wrong password)
    surfaces as the same CredentialsSignin error.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def authorize(self, credentials: Mapping[str, Any]) -> UserRecord:
        decoded = decode(Credentials, extract_fields(credentials, CREDENTIAL_FIELDS))
        if isinstance(decoded, Rejected):
            raise AuthError(AuthErrorType.CREDENTIALS_SIGNIN)

        try:
            async with self.database.session() as session:
                user = await queries.fetch_user_by_email(session, decoded.value.email)
        except SQLAlchemyError as e:
            logger.exception("Failed to fetch user")
            raise AuthError(AuthErrorType.CALLBACK_ROUTE_ERROR, "Failed to fetch user.") from e

        if user is None or not verify_password(decoded.value.password, user.password):
            logger.info(f"Invalid credentials for {decoded.value.email}")
            raise AuthError(AuthErrorType.CREDENTIALS_SIGNIN)
        return user


class Authenticator:
    """Dispatches sign-in to a named provider and issues session tokens."""

    def __init__(
        self,
        providers: Mapping[str, Provider],
        secret: str,
        ttl_minutes: int = 60 * 24,
    ) -> None:
        self.providers = dict(providers)
        self.secret = secret
        self.ttl_minutes = ttl_minutes

    async def sign_in(self, provider: str, credentials: Mapping[str, Any]) -> SignedIn:
        """
        Sign in with the named provider.

        Raises:
            AuthError: Unknown provider, bad credentials, or provider failure
        """
        handler = self.providers.get(provider)
        if handler is None:
            raise AuthError(AuthErrorType.CONFIGURATION, f"Unknown provider: {provider}")

        user = await handler.authorize(credentials)
        logger.info(f"User {user.id} signed in via {provider}")
        return SignedIn(
            token=mint_session_token(user.id, self.secret, self.ttl_minutes),
            redirect_path=safe_redirect(credentials.get("redirectTo")),
        )

    def session_user(self, token: str | None) -> str | None:
        """User id for a session cookie value, None if absent or invalid."""
        if not token:
            return None
        return verify_session_token(token, self.secret)


async def authenticate(
    previous: str | None,
    form: Mapping[str, Any],
    authenticator: Authenticator,
) -> str | SignedIn:
    """
    Login form action.

    Returns the SignedIn result on success, otherwise the message to show.
    Errors that are not AuthError propagate unchanged.
    """
    try:
        return await authenticator.sign_in("credentials", form)
    except AuthError as error:
        match error.type:
            case AuthErrorType.CREDENTIALS_SIGNIN:
                return "Invalid credentials."
            case _:
                return "Something went wrong."


async def ensure_user(database: Database, *, name: str, email: str, password: str) -> None:
    """Create the user unless one with this email already exists."""
    async with database.session() as session:
        if await queries.fetch_user_by_email(session, email) is not None:
            return
        await queries.insert_user(
            session,
            name=name,
            email=email,
            password_hash=hash_password(password),
        )
