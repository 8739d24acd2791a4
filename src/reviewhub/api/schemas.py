"""Pydantic request/response schemas for the ReviewHub API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class RegisterUserRequest(BaseModel):
    email: str = Field(max_length=254)
    full_name: str | None = Field(default=None, max_length=150)


class ProvisionStaffRequest(BaseModel):
    email: str = Field(max_length=254)
    full_name: str | None = Field(default=None, max_length=150)
    role: str  # "Admin", "Operator" or "SubAdmin"
    permissions: dict[str, Any] | None = None


class UpdatePermissionsRequest(BaseModel):
    permissions: dict[str, Any]


class AccountStatusRequest(BaseModel):
    action: str  # "deactivate", "reactivate", "delete" or "restore"


class RegisterCompanyRequest(BaseModel):
    name: str = Field(max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    website: str | None = Field(default=None, max_length=500)
    operator_id: str | None = None


class UpdateCompanyRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    website: str | None = Field(default=None, max_length=500)


class RejectCompanyRequest(BaseModel):
    reason: str | None = None


class SubmitReviewRequest(BaseModel):
    company_id: str
    rating: int
    title: str | None = Field(default=None, max_length=200)
    comment: str | None = None


class EditReviewRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    comment: str | None = None
    rating: int | None = None


class ModerateReviewRequest(BaseModel):
    action: str  # "hide", "unhide", "pin" or "unpin"


class CreateBlogRequest(BaseModel):
    title: str = Field(max_length=200)
    content: str
    excerpt: str | None = None
    slug: str | None = Field(default=None, max_length=220)
    status: str = "draft"


class UpdateBlogRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str | None = None
    excerpt: str | None = None
    slug: str | None = Field(default=None, max_length=220)


class ModerateBlogRequest(BaseModel):
    action: str
    flag_reason: str | None = None
    flag_details: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class IdResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class TransitionResponse(BaseModel):
    item_id: str
    action: str
    changed: bool
    removed: bool
    state: dict[str, Any] = {}


class CompanyResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    website: str | None = None
    status: str
    operator_id: str | None = None
    ratings_aggregate: float
    total_reviews: int


class ReviewResponse(BaseModel):
    id: str
    company_id: str
    user_id: str
    rating: int
    title: str | None = None
    comment: str | None = None
    is_hidden: bool
    is_pinned: bool
    created_at: datetime | None = None


class FlagResponse(BaseModel):
    reason: str
    additional_details: str | None = None
    flagged_by: str
    flagged_at: datetime


class BlogResponse(BaseModel):
    id: str
    title: str
    slug: str
    excerpt: str | None = None
    content: str
    author_id: str
    status: str
    published_at: datetime | None = None
    is_featured: bool
    is_deleted: bool
    is_flagged: bool
    flag: FlagResponse | None = None
    views: int


class BlogViewResponse(BaseModel):
    blog: BlogResponse
    new_view: bool
    total_views: int
