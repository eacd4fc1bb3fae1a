"""Account validation rules.

Each check returns the accepted value or raises BadRequestException tagged
with the FailureCode of the first rule that failed. Create and update share
these functions so an account can never be updated into a state it could
not have been created in.
"""

import math
import re
from typing import Any, Optional

from accounts_api.core.exceptions import BadRequestException, FailureCode
from accounts_api.domain.models.user import Role

MIN_PASSWORD_LENGTH = 8
MIN_AGE = 18

# local-part @ domain containing a dot, no whitespace anywhere
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def validate_email(email: Any) -> str:
    if not isinstance(email, str) or not email.strip():
        raise BadRequestException("Email is required", FailureCode.EMAIL_REQUIRED)
    if not EMAIL_PATTERN.fullmatch(email):
        raise BadRequestException("Invalid email format", FailureCode.EMAIL_INVALID_FORMAT)
    return email


def validate_password(password: Any) -> str:
    if not isinstance(password, str) or not password:
        raise BadRequestException("Password is required", FailureCode.PASSWORD_REQUIRED)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            FailureCode.PASSWORD_TOO_SHORT,
        )
    return password


def validate_age(age: Any) -> int:
    """Accept whole numbers of at least MIN_AGE.

    JSON does not distinguish 25 from 25.0, so an integral float is taken as
    the integer it denotes. Booleans, strings, NaN and fractions are rejected.
    """
    if age is None:
        raise BadRequestException("Age is required", FailureCode.AGE_REQUIRED)
    if isinstance(age, bool):
        raise BadRequestException("Age must be an integer", FailureCode.AGE_NOT_INTEGER)
    if isinstance(age, float):
        if not math.isfinite(age) or not age.is_integer():
            raise BadRequestException("Age must be an integer", FailureCode.AGE_NOT_INTEGER)
        age = int(age)
    if not isinstance(age, int):
        raise BadRequestException("Age must be an integer", FailureCode.AGE_NOT_INTEGER)
    if age < MIN_AGE:
        raise BadRequestException(
            f"User must be at least {MIN_AGE} years old", FailureCode.AGE_UNDER_MINIMUM
        )
    return age


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise BadRequestException("Name is required", FailureCode.NAME_REQUIRED)
    return name


def validate_role(role: Any, default: Optional[Role] = None) -> Role:
    if role is None and default is not None:
        return default
    try:
        return Role(role)
    except ValueError:
        raise BadRequestException("Role must be USER or ADMIN", FailureCode.ROLE_INVALID) from None
