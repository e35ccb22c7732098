import hmac
import hashlib
import time
from typing import Optional
from fastapi import Header, HTTPException, Request
from core.config import settings
from core.exceptions import Unauthorized
from core.logger import logger

ADMIN_SUBJECT = "admin"


def _sign(data: str) -> str:
    return hmac.new(settings.SECRET_KEY.encode(), data.encode(), hashlib.sha256).hexdigest()


def generate_token(subject: str = ADMIN_SUBJECT, timestamp: Optional[int] = None) -> str:
    """Issue a signed token. Format: {subject}:{timestamp}:{signature}"""
    if timestamp is None:
        timestamp = int(time.time())
    data = f"{subject}:{timestamp}"
    return f"{data}:{_sign(data)}"


def verify_token(token: str) -> Optional[str]:
    """
    Verify a signed admin token and return its subject.
    Returns None for malformed, expired or forged tokens.
    """
    if not token:
        return None

    parts = token.split(':')
    if len(parts) != 3:
        return None

    subject, timestamp_str, signature = parts
    try:
        timestamp = int(timestamp_str)
    except ValueError:
        return None

    # Check expiration
    if int(time.time()) - timestamp > settings.TOKEN_TTL_SECONDS:
        logger.warning("Token expired", subject=subject)
        return None

    expected_signature = _sign(f"{subject}:{timestamp_str}")
    if hmac.compare_digest(expected_signature, signature):
        return subject

    logger.warning("Token signature mismatch", subject=subject)
    return None


def check_credentials(email: str, password: str) -> bool:
    """Compare against the configured admin. Email is case-insensitive, password is verbatim."""
    admin_email = settings.ADMIN_EMAIL.strip().lower()
    if not admin_email or not settings.ADMIN_PASSWORD:
        return False
    email_match = hmac.compare_digest(email.strip().lower().encode(), admin_email.encode())
    pass_match = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    return email_match and pass_match


def token_from_headers(authorization: Optional[str], x_auth_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    return x_auth_token


def is_admin(
    authorization: Optional[str] = Header(None),
    x_auth_token: Optional[str] = Header(None),
) -> bool:
    token = token_from_headers(authorization, x_auth_token)
    return verify_token(token) == ADMIN_SUBJECT if token else False


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    x_auth_token: Optional[str] = Header(None),
) -> str:
    if is_admin(authorization, x_auth_token):
        return ADMIN_SUBJECT

    logger.warning("Admin auth failed: missing or invalid credentials", path=request.url.path)
    raise Unauthorized()


async def enforce_login_rate_limit(redis, client: str) -> None:
    """Allow LOGIN_RATE_LIMIT attempts per client per minute."""
    rate_key = f"rl:login:{client}"
    current_count = await redis.get(rate_key)
    if current_count and int(current_count) >= settings.LOGIN_RATE_LIMIT:
        logger.warning("Login rate limit hit", client=client)
        raise HTTPException(status_code=429, detail="Too many login attempts. Please wait a minute.")

    await redis.incr(rate_key)
    if not current_count:
        await redis.expire(rate_key, 60)
