"""
Authentication Module (v3.0.0)
Password accounts with JWT bearer tokens for ShineWardrobe.
"""
import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone

from fastapi import Header, HTTPException, Request
from jose import jwt, JWTError
from passlib.context import CryptContext

from shine_wardrobe.config.settings import Settings
from shine_wardrobe.core.models import User
from shine_wardrobe.core.validation import (
    ValidationError,
    validate_registration,
    validate_name,
    validate_gender,
    normalize_email,
)
from shine_wardrobe.db.users import UserRepository, DuplicateEmailError
from shine_wardrobe.db.recommendations import RecommendationRepository

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthError(Exception):
    """Missing, invalid or expired credentials."""
    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ==================== PASSWORDS ====================

def build_password_context(rounds: int = 10) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


pwd_context = build_password_context()


def hash_password(password: str, context: Optional[CryptContext] = None) -> str:
    return (context or pwd_context).hash(password)


def verify_password(password: str, hashed: str, context: Optional[CryptContext] = None) -> bool:
    return (context or pwd_context).verify(password, hashed)


# ==================== TOKENS ====================

def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user: Token subject
        settings: Provides secret, algorithm and default expiry
        expires_delta: Override the configured lifetime

    Returns:
        Encoded JWT
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {"sub": user.id, "email": user.email, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """
    Verify a token and return its claims.

    Raises:
        AuthError: If the signature is wrong, the token expired or has no subject
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthError("Invalid or expired token") from e

    if not payload.get("sub"):
        raise AuthError("Invalid token payload")
    return payload


# ==================== SERVICE ====================

class AuthService:
    """Registration, login and profile management."""

    def __init__(
        self,
        users: UserRepository,
        recommendations: RecommendationRepository,
        settings: Settings,
    ):
        self.users = users
        self.recommendations = recommendations
        self.settings = settings
        self.pwd_context = build_password_context(settings.bcrypt_rounds)

    def register(
        self,
        email: str,
        password: str,
        name: str,
        city: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationError: Bad input (400) or email already registered (409)
        """
        data = validate_registration(email, password, name, gender)

        if self.users.find_by_email(data["email"]):
            raise ValidationError("User with this email already exists", status_code=409)

        user = User(
            email=data["email"],
            name=data["name"],
            password_hash=hash_password(password, self.pwd_context),
            city=city.strip() if city else None,
            gender=data["gender"],
        )

        try:
            self.users.create(user)
        except DuplicateEmailError as e:
            raise ValidationError("User with this email already exists", status_code=409) from e

        logger.info(f"User registered: {user.id}")
        return user

    def login(self, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthError: Unknown email or wrong password (same message for both)
        """
        user = self.users.find_by_email(normalize_email(email or ""))
        if not user or not verify_password(password or "", user.password_hash, self.pwd_context):
            logger.info("Login failed")
            raise AuthError("Invalid email or password")

        logger.info(f"User logged in: {user.id}")
        return user

    def create_access_token(self, user: User) -> str:
        return create_access_token(user, self.settings)

    def refresh_token(self, user: User) -> str:
        return create_access_token(user, self.settings)

    def token_response(self, user: User) -> dict:
        return {
            "access_token": self.create_access_token(user),
            "token_type": "bearer",
            "user": user.to_public_dict(),
        }

    def authenticate_token(self, token: str) -> User:
        """Resolve a bearer token to its user."""
        payload = decode_access_token(token, self.settings)
        user = self.users.find_by_id(payload["sub"])
        if not user:
            raise AuthError("User not found")
        return user

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        city: Optional[str] = None,
        gender: Optional[str] = None,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> Optional[User]:
        updates: Dict[str, Any] = {}
        if name is not None:
            updates["name"] = validate_name(name)
        if city is not None:
            updates["city"] = city.strip()
        if gender is not None:
            updates["gender"] = validate_gender(gender)
        if preferences is not None:
            updates["preferences"] = preferences

        if not updates:
            return self.users.find_by_id(user_id)

        logger.info(f"Profile updated: {user_id} ({', '.join(sorted(updates))})")
        return self.users.update(user_id, updates)

    def delete_account(self, user_id: str) -> bool:
        """Delete the user and every recommendation they own."""
        removed = self.recommendations.delete_by_user(user_id)
        deleted = self.users.delete(user_id)
        logger.info(f"Account deleted: {user_id} ({removed} recommendations removed)")
        return deleted


# ==================== FASTAPI DEPENDENCY ====================

async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> User:
    """
    FastAPI dependency for authentication.

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            ...

    Raises:
        HTTPException 401: If no token, invalid token or unknown user
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token. Include 'Authorization: Bearer <token>' header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[len(BEARER_PREFIX):].strip()
    auth_service: AuthService = request.app.state.container.auth_service

    try:
        user = auth_service.authenticate_token(token)
    except AuthError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authenticated user: {user.id}")
    return user
