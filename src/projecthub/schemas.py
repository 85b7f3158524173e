"""Request and response bodies for the HTTP API."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class UserCreate(BaseModel):
    """Request body for registering a new user."""

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=1024)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)


class UserLogin(BaseModel):
    """Request body for user login."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=1024)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)


class PublicUser(BaseModel):
    """User fields safe to return to clients."""

    user_id: int = Field(..., serialization_alias="userId")
    username: str
    email: str


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    user: PublicUser


class LoginUser(BaseModel):
    user_id: int = Field(..., serialization_alias="userId")
    username: str


class LoginResponse(BaseModel):
    """Bearer token plus a summary of the authenticated user."""

    token: str
    user: LoginUser


class CurrentUserResponse(BaseModel):
    user: PublicUser


class TemplateItem(BaseModel):
    """Serialized template."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    featured: bool
    description: str | None = None
    category: str | None = None
    image_url: str | None = Field(None, serialization_alias="imageUrl")


class TemplateListResponse(BaseModel):
    templates: List[TemplateItem]


class ProjectCreate(BaseModel):
    """Request body for creating a project; the owner comes from the token."""

    template_id: str = Field(..., alias="templateId", min_length=1)
    title: str = Field(..., min_length=1, max_length=200)


class ProjectCreatedResponse(BaseModel):
    project_id: int = Field(..., serialization_alias="projectId")
    title: str
    status: str


class ProjectItem(BaseModel):
    project_id: int = Field(..., serialization_alias="projectId")
    template_id: str = Field(..., serialization_alias="templateId")
    title: str
    status: str


class ProjectListResponse(BaseModel):
    projects: List[ProjectItem]
