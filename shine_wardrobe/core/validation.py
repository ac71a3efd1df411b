"""
Input Validation Module (v3.0.0)
Validates account, recommendation and pagination input.
"""
import re
import logging
from typing import Optional, Tuple

from shine_wardrobe.core.models import USER_GENDERS

logger = logging.getLogger(__name__)

# Configuration
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
MAX_PAGE_LIMIT = 100


class ValidationError(Exception):
    """Custom exception for validation errors."""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: Optional[str]) -> str:
    """
    Check email format.

    Returns:
        Lower-cased email

    Raises:
        ValidationError: If missing or malformed
    """
    if not email or not EMAIL_PATTERN.match(email.strip()):
        raise ValidationError("Invalid email format")
    return normalize_email(email)


def validate_password(password: Optional[str]) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def validate_name(name: Optional[str]) -> str:
    if not name or len(name.strip()) < MIN_NAME_LENGTH:
        raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters")
    return name.strip()


def validate_gender(gender: Optional[str], required: bool = False) -> Optional[str]:
    """
    Check gender against the allowed values.

    Args:
        gender: Raw value
        required: Whether a missing value is an error

    Returns:
        Lower-cased gender, or None when absent and optional
    """
    if not gender:
        if required:
            raise ValidationError("gender is required")
        return None

    normalized = gender.strip().lower()
    if normalized not in USER_GENDERS:
        raise ValidationError(f"gender must be one of: {', '.join(USER_GENDERS)}")
    return normalized


def validate_registration(
    email: Optional[str],
    password: Optional[str],
    name: Optional[str],
    gender: Optional[str] = None,
) -> dict:
    """
    Validate input for POST /api/auth/register.

    Returns:
        Dict with validated/normalized values

    Raises:
        ValidationError: If validation fails
    """
    errors = []

    for check in (
        lambda: validate_email(email),
        lambda: validate_password(password),
        lambda: validate_name(name),
        lambda: validate_gender(gender),
    ):
        try:
            check()
        except ValidationError as e:
            errors.append(e.message)

    if errors:
        raise ValidationError("; ".join(errors), status_code=400)

    return {
        "email": normalize_email(email),
        "name": name.strip(),
        "gender": validate_gender(gender),
    }


def validate_city(city: Optional[str]) -> str:
    if not city or not city.strip():
        raise ValidationError("city is required")
    return city.strip()


def validate_recommendation_input(city: Optional[str], gender: Optional[str]) -> Tuple[str, str]:
    """
    Validate input for a recommendation request.

    Returns:
        (city, gender) with whitespace stripped and gender lower-cased
    """
    return validate_city(city), validate_gender(gender, required=True)


def validate_pagination(page: int, limit: int) -> Tuple[int, int]:
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    return page, limit
