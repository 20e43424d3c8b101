from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from blog_api.models import Role

# Surrounding whitespace is trimmed before the length check and is not stored.
TrimmedText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5)]


# --- Auth ---

class UserRegister(BaseModel):
    email: EmailStr
    password: Annotated[str, StringConstraints(strip_whitespace=True, min_length=5)]
    firstName: str = Field("", max_length=150)
    lastName: str = Field("", max_length=150)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


# --- Feed ---

class PostInput(BaseModel):
    """Body of both the create and the update endpoint."""

    title: TrimmedText = Field(max_length=300)
    content: TrimmedText


# --- Users ---

class RoleUpdate(BaseModel):
    role: Role
