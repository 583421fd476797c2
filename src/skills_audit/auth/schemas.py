"""Request schemas for authentication endpoints."""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from src.skills_audit.services.database.models import Department

EMPLOYEE_ID_PATTERN = re.compile(r"^EMP\d{4,6}$", re.IGNORECASE)
PHONE_NUMBER_PATTERN = re.compile(r"^(\+27|0)[1-9]\d{8}$")


def is_password_strong(password: str) -> bool:
    """At least 8 characters with upper, lower, digit and special characters."""
    return (
        len(password) >= 8
        and any(c.isupper() for c in password)
        and any(c.islower() for c in password)
        and any(c.isdigit() for c in password)
        and any(not c.isalnum() for c in password)
    )


def validate_phone_number(value: str | None) -> str | None:
    """Optional South African phone number (+27 or 0 prefix, 9 further digits)."""
    if value in (None, ""):
        return None
    if not PHONE_NUMBER_PATTERN.match(value):
        raise ValueError("Invalid phone number")
    return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    remember_me: bool = False


class RegisterRequest(BaseModel):
    """Self-registration payload. The new profile always gets the employee role."""

    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    employee_id: str = Field(max_length=20)
    department: Department
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("employee_id")
    @classmethod
    def check_employee_id(cls, value: str) -> str:
        if not EMPLOYEE_ID_PATTERN.match(value):
            raise ValueError("Employee ID must be EMP followed by 4 to 6 digits")
        return value.upper()

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not is_password_strong(value):
            raise ValueError(
                "Password must be at least 8 characters and include upper and lower case "
                "letters, a digit and a special character"
            )
        return value

    @model_validator(mode="after")
    def check_passwords_match(self) -> "RegisterRequest":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class ResetPasswordRequest(BaseModel):
    email: EmailStr


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not is_password_strong(value):
            raise ValueError("Password is too weak")
        return value


class UpdateEmailRequest(BaseModel):
    new_email: EmailStr

    @field_validator("new_email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()
