"""
Security Utilities
Password hashing, signed intent-scoped tokens, and small helpers
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import SECRET_KEY, SESSION_TOKEN_TTL_HOURS
from .exceptions import InvalidToken, TokenExpired, WrongTokenIntent
from .shared.validators import utcnow

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Token intents
INTENT_REGISTRATION = "registration"
INTENT_SESSION = "session"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Check password strength and return detailed feedback

    Returns:
        dict with 'score' (0-4), 'feedback' (list of suggestions), and 'is_valid' (bool)
    """
    score = 0
    feedback = []

    if len(password) < 8:
        feedback.append("Password must be at least 8 characters long")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Add lowercase letters")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Add uppercase letters")

    if re.search(r"\d", password):
        score += 1
    else:
        feedback.append("Add numbers")

    common_passwords = ["password", "12345678", "qwertyui", "letmein1"]
    if password.lower() in common_passwords:
        score = 0
        feedback.append("This is a commonly used password - choose something unique")

    return {
        "score": min(score, 4),
        "feedback": feedback,
        "is_valid": len(password) >= 8 and score >= 3,
    }


def mask_email(email: str) -> str:
    """Mask an email address for logging: j***@example.com"""
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:1]}***@{domain}"


# ============================================================================
# SIGNED TOKENS
# ============================================================================


def _to_epoch(value: datetime) -> int:
    return int(value.replace(tzinfo=timezone.utc).timestamp())


def _from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


@dataclass
class IssuedToken:
    token: str
    jti: str
    subject: str
    intent: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """
    Issues and verifies signed, time-limited, single-purpose tokens.

    Verification is pure: it never touches the database. Single use is
    enforced by the caller through the backing record, because a signed
    token cannot be revoked on its own.
    """

    def __init__(
        self,
        secret_key: str = SECRET_KEY,
        algorithm: str = ALGORITHM,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.clock = clock

    def issue(
        self,
        subject: str,
        intent: str,
        ttl: timedelta,
        extra: Optional[dict[str, Any]] = None,
    ) -> IssuedToken:
        issued_at = self.clock().replace(microsecond=0)
        expires_at = issued_at + ttl
        jti = str(uuid.uuid4())

        claims = dict(extra or {})
        claims.update(
            {
                "sub": subject,
                "intent": intent,
                "iat": _to_epoch(issued_at),
                "exp": _to_epoch(expires_at),
                "jti": jti,
            }
        )
        token = jose_jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return IssuedToken(
            token=token,
            jti=jti,
            subject=subject,
            intent=intent,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(self, token: str, expected_intent: str) -> dict[str, Any]:
        """
        Verify and decode a token

        Raises:
            InvalidToken: signature or structure is invalid
            TokenExpired: past its expiry (claims attached)
            WrongTokenIntent: signed for a different purpose
        """
        if not token or not isinstance(token, str):
            raise InvalidToken()

        try:
            # Expiry is checked below against the injected clock
            claims = jose_jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            raise InvalidToken() from e

        if not all(key in claims for key in ("sub", "intent", "exp", "jti")):
            logger.warning("Token verification failed: missing claims")
            raise InvalidToken()

        claims["issued_at"] = _from_epoch(claims["iat"]) if "iat" in claims else None
        claims["expires_at"] = _from_epoch(claims["exp"])

        if self.clock() >= claims["expires_at"]:
            raise TokenExpired(claims=claims)

        if claims["intent"] != expected_intent:
            logger.warning(
                f"Token intent mismatch: expected {expected_intent}, got {claims['intent']}"
            )
            raise WrongTokenIntent()

        return claims


# Process-wide issuer; the signing key is configuration, never per request
token_issuer = TokenIssuer()


def get_token_issuer() -> TokenIssuer:
    """Dependency injection for the token issuer"""
    return token_issuer


def create_session_token(client, issuer: Optional[TokenIssuer] = None) -> str:
    """Create a session JWT for a logged-in client or operator"""
    issuer = issuer or token_issuer
    issued = issuer.issue(
        subject=client.id,
        intent=INTENT_SESSION,
        ttl=timedelta(hours=SESSION_TOKEN_TTL_HOURS),
        extra={"email": client.email, "role": client.role},
    )
    return issued.token
