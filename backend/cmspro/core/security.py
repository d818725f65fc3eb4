from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
from jose import JWTError, jwt
import bcrypt
import hashlib
import secrets

from cmspro.core.config import settings
from cmspro.core.exceptions import UnauthenticatedError

SESSION_TOKEN_TYPE = "access"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed session token (JWT), valid SESSION_TOKEN_EXPIRE_DAYS by default"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS)

    to_encode.update({"exp": expire, "type": SESSION_TOKEN_TYPE})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode a session token; bad signature, expiry or wrong type is unauthenticated"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthenticatedError("Could not validate credentials")

    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise UnauthenticatedError("Invalid token type")

    return payload


def hash_approval_token(token: str) -> str:
    """One-way hash stored in place of the raw approval token"""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def generate_approval_token() -> Tuple[str, str, datetime]:
    """
    Create a single-use approval token.

    Returns:
        (raw token for the email link, hash to persist, expiry instant)
    """
    token = secrets.token_hex(20)
    expires = datetime.utcnow() + timedelta(hours=settings.APPROVAL_TOKEN_EXPIRE_HOURS)
    return token, hash_approval_token(token), expires
