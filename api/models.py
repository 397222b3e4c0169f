"""
API request and response models for CondoDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
maintenance/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire names are camelCase (complexName, refreshToken, imgUrl, accessToken) to
match the existing mobile client. _CamelModel handles the translation; Python
code keeps snake_case attribute names.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Role, User
from maintenance.models import Requisition, RequisitionStatus

# bcrypt ignores everything past 72 bytes; refuse such passwords up front.
_BCRYPT_MAX_BYTES = 72


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelModel):
    """Request body for POST /api/v1/register."""

    name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    complex_name: str = Field(min_length=1, max_length=255)
    complement: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {_BCRYPT_MAX_BYTES} bytes")
        return value


class LoginRequest(_CamelModel):
    """Request body for POST /api/v1/login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class RefreshRequest(_CamelModel):
    """Request body for POST /api/v1/refresh."""

    refresh_token: str = Field(min_length=1)


class RoleUpdate(_CamelModel):
    """Request body for PATCH /api/v1/users/{user_id}/role. Unknown role values are a 400."""

    role: Role


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class TokenPairResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenPairResponse):
    """Token pair plus the profile fields the client needs after login."""

    id: int
    username: str
    name: str
    role: Role
    complex_id: Optional[int]


class MeResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: Role


class UserResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    name: str
    role: Role
    is_active: bool
    complex_id: Optional[int]
    complement: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Build the public view of a User. Never exposes hashed_password."""
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            role=user.role,
            is_active=user.is_active,
            complex_id=user.complex_id,
            complement=user.complement,
            created_at=user.created_at or "",
        )


# ---------------------------------------------------------------------------
# Complexes
# ---------------------------------------------------------------------------


class ComplexNameRow(_CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str


# ---------------------------------------------------------------------------
# Requisitions
# ---------------------------------------------------------------------------


class RequisitionCreate(_CamelModel):
    """Request body for POST /api/v1/requisition.

    Any complexId sent by the client is ignored; the creator's complex is used.
    """

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1, max_length=5000)
    location: str = Field(min_length=1, max_length=255)
    priority: str = Field(min_length=1, max_length=50)
    img_url: Optional[str] = Field(default=None, max_length=2048)


class RequisitionResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    complex_id: int
    title: str
    content: str
    location: str
    img_url: Optional[str]
    priority: str
    status: RequisitionStatus
    created_at: str

    @classmethod
    def from_requisition(cls, req: Requisition) -> "RequisitionResponse":
        return cls(
            id=req.id,
            user_id=req.user_id,
            complex_id=req.complex_id,
            title=req.title,
            content=req.content,
            location=req.location,
            img_url=req.img_url,
            priority=req.priority,
            status=req.status,
            created_at=req.created_at,
        )


class RequisitionCreatedResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    message: str
    requisition: RequisitionResponse


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
