"""
User models for the Campus Library API.

Users are either students, who reserve books, or librarians, who run the
catalog and the lending desk.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Role of an account."""

    STUDENT = "Student"
    LIBRARIAN = "Librarian"


class User(BaseModel):
    """A registered account. The password hash is never part of this model."""

    id: str = Field(
        ...,
        description="Unique identifier for the user",
        pattern=r"^user_[a-f0-9]{6,}$",
    )

    name: str = Field(..., min_length=1, max_length=200)

    email: EmailStr = Field(..., description="Login email address")

    role: Role = Field(default=Role.STUDENT)

    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_librarian(self) -> bool:
        return self.role == Role.LIBRARIAN

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class UserRegister(BaseModel):
    """Request body for account registration."""

    name: str = Field(..., min_length=1, max_length=200, description="Name is required")
    email: EmailStr = Field(..., description="Please provide a valid email")
    password: str = Field(
        ..., min_length=6, max_length=128, description="Password must be at least 6 characters"
    )
    role: Role = Field(default=Role.STUDENT, description="Role must be Student or Librarian")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are unique case-insensitively."""
        return v.lower()


class UserLogin(BaseModel):
    """Request body for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, description="Password is required")


class AuthSession(BaseModel):
    """Login/registration result: the account and its bearer token."""

    token: str
    user: User
