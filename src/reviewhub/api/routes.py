"""FastAPI routes for ReviewHub.

Each route translates between Pydantic schemas (external contract) and
Protean commands (internal domain concepts).
"""

import json

from fastapi import APIRouter, Depends, HTTPException, Request
from protean.utils.globals import current_domain

from reviewhub.access.account_status import (
    DeactivatePrincipal,
    DeletePrincipal,
    ReactivatePrincipal,
    RestorePrincipal,
)
from reviewhub.access.identity import IdentityContext, resolve_identity
from reviewhub.access.permissions import UpdatePermissions
from reviewhub.access.registration import ProvisionStaffAccount, RegisterUser
from reviewhub.api.dependencies import optional_identity, principal_id, request_viewer
from reviewhub.api.schemas import (
    AccountStatusRequest,
    BlogResponse,
    BlogViewResponse,
    CompanyResponse,
    CreateBlogRequest,
    EditReviewRequest,
    FlagResponse,
    IdResponse,
    ModerateBlogRequest,
    ModerateReviewRequest,
    ProvisionStaffRequest,
    RegisterCompanyRequest,
    RegisterUserRequest,
    RejectCompanyRequest,
    ReviewResponse,
    StatusResponse,
    SubmitReviewRequest,
    TransitionResponse,
    UpdateBlogRequest,
    UpdateCompanyRequest,
    UpdatePermissionsRequest,
)
from reviewhub.blog.authoring import CreateBlog, UpdateBlog
from reviewhub.blog.moderation import ModerateBlog
from reviewhub.blog.queries import blogs_visible_to, published_blogs
from reviewhub.blog.viewing import view_blog
from reviewhub.company.company import Company
from reviewhub.company.management import ApproveCompany, RegisterCompany, RejectCompany, UpdateCompanyDetails
from reviewhub.review.editing import EditReview
from reviewhub.review.moderation import ModerateReview
from reviewhub.review.queries import reviews_for_company
from reviewhub.review.removal import DeleteReview
from reviewhub.review.submission import SubmitReview

principal_router = APIRouter(prefix="/principals", tags=["principals"])
company_router = APIRouter(prefix="/companies", tags=["companies"])
review_router = APIRouter(prefix="/reviews", tags=["reviews"])
blog_router = APIRouter(prefix="/blogs", tags=["blogs"])

_ACCOUNT_COMMANDS = {
    "deactivate": DeactivatePrincipal,
    "reactivate": ReactivatePrincipal,
    "delete": DeletePrincipal,
    "restore": RestorePrincipal,
}


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------
def _company(company) -> CompanyResponse:
    return CompanyResponse(
        id=str(company.id),
        name=company.name,
        description=company.description,
        category=company.category,
        website=company.website,
        status=company.status,
        operator_id=str(company.operator_id) if company.operator_id else None,
        ratings_aggregate=company.ratings_aggregate,
        total_reviews=company.total_reviews,
    )


def _review(review) -> ReviewResponse:
    return ReviewResponse(
        id=str(review.id),
        company_id=str(review.company_id),
        user_id=str(review.user_id),
        rating=review.rating.score,
        title=review.title,
        comment=review.comment,
        is_hidden=review.is_hidden,
        is_pinned=review.is_pinned,
        created_at=review.created_at,
    )


def _blog(blog) -> BlogResponse:
    flag = None
    if blog.flag is not None:
        flag = FlagResponse(
            reason=blog.flag.reason,
            additional_details=blog.flag.additional_details,
            flagged_by=str(blog.flag.flagged_by),
            flagged_at=blog.flag.flagged_at,
        )
    return BlogResponse(
        id=str(blog.id),
        title=blog.title,
        slug=blog.slug,
        excerpt=blog.excerpt,
        content=blog.content,
        author_id=str(blog.author_id),
        status=blog.status,
        published_at=blog.published_at,
        is_featured=blog.is_featured,
        is_deleted=blog.is_deleted,
        is_flagged=blog.is_flagged,
        flag=flag,
        views=blog.views,
    )


def _transition(result) -> TransitionResponse:
    return TransitionResponse(
        item_id=result.item_id,
        action=result.action.value,
        changed=result.changed,
        removed=result.removed,
        state=result.state,
    )


# ---------------------------------------------------------------------------
# Principals
# ---------------------------------------------------------------------------
@principal_router.post("", status_code=201, response_model=IdResponse)
async def register_user(body: RegisterUserRequest) -> IdResponse:
    """Sign up as a User."""
    new_id = current_domain.process(RegisterUser(email=body.email, full_name=body.full_name), asynchronous=False)
    return IdResponse(id=new_id)


@principal_router.post("/staff", status_code=201, response_model=IdResponse)
async def provision_staff(body: ProvisionStaffRequest, actor_id: str = Depends(principal_id)) -> IdResponse:
    """Provision an Admin, Operator or SubAdmin account."""
    command = ProvisionStaffAccount(
        actor_id=actor_id,
        email=body.email,
        full_name=body.full_name,
        role=body.role,
        permissions=json.dumps(body.permissions) if body.permissions is not None else None,
    )
    new_id = current_domain.process(command, asynchronous=False)
    return IdResponse(id=new_id)


@principal_router.put("/{target_id}/permissions", response_model=StatusResponse)
async def update_permissions(
    target_id: str, body: UpdatePermissionsRequest, actor_id: str = Depends(principal_id)
) -> StatusResponse:
    """Replace a staff member's permission tree."""
    command = UpdatePermissions(actor_id=actor_id, principal_id=target_id, permissions=json.dumps(body.permissions))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@principal_router.put("/{target_id}/status", response_model=StatusResponse)
async def change_account_status(
    target_id: str, body: AccountStatusRequest, actor_id: str = Depends(principal_id)
) -> StatusResponse:
    """Deactivate, reactivate, delete or restore an account."""
    command_cls = _ACCOUNT_COMMANDS.get(body.action.lower())
    if command_cls is None:
        raise HTTPException(status_code=400, detail=f"Unknown account action '{body.action}'")
    current_domain.process(command_cls(actor_id=actor_id, principal_id=target_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------
@company_router.post("", status_code=201, response_model=IdResponse)
async def register_company(body: RegisterCompanyRequest, actor_id: str = Depends(principal_id)) -> IdResponse:
    """Register a company listing."""
    command = RegisterCompany(
        actor_id=actor_id,
        name=body.name,
        description=body.description,
        category=body.category,
        website=body.website,
        operator_id=body.operator_id,
    )
    company_id = current_domain.process(command, asynchronous=False)
    return IdResponse(id=company_id)


@company_router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(company_id: str) -> CompanyResponse:
    return _company(current_domain.repository_for(Company).get(company_id))


@company_router.get("/{company_id}/reviews", response_model=list[ReviewResponse])
async def list_company_reviews(company_id: str) -> list[ReviewResponse]:
    """Visible reviews, pinned first."""
    current_domain.repository_for(Company).get(company_id)
    return [_review(r) for r in reviews_for_company(company_id)]


@company_router.put("/{company_id}", response_model=StatusResponse)
async def update_company(
    company_id: str, body: UpdateCompanyRequest, actor_id: str = Depends(principal_id)
) -> StatusResponse:
    command = UpdateCompanyDetails(
        actor_id=actor_id,
        company_id=company_id,
        name=body.name,
        description=body.description,
        category=body.category,
        website=body.website,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@company_router.put("/{company_id}/approve", response_model=StatusResponse)
async def approve_company(company_id: str, actor_id: str = Depends(principal_id)) -> StatusResponse:
    current_domain.process(ApproveCompany(actor_id=actor_id, company_id=company_id), asynchronous=False)
    return StatusResponse()


@company_router.put("/{company_id}/reject", response_model=StatusResponse)
async def reject_company(
    company_id: str, body: RejectCompanyRequest, actor_id: str = Depends(principal_id)
) -> StatusResponse:
    command = RejectCompany(actor_id=actor_id, company_id=company_id, reason=body.reason)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@review_router.post("", status_code=201, response_model=IdResponse)
async def submit_review(body: SubmitReviewRequest, actor_id: str = Depends(principal_id)) -> IdResponse:
    """Review a company."""
    command = SubmitReview(
        actor_id=actor_id,
        company_id=body.company_id,
        rating=body.rating,
        title=body.title,
        comment=body.comment,
    )
    review_id = current_domain.process(command, asynchronous=False)
    return IdResponse(id=review_id)


@review_router.put("/{review_id}", response_model=StatusResponse)
async def edit_review(review_id: str, body: EditReviewRequest, actor_id: str = Depends(principal_id)) -> StatusResponse:
    command = EditReview(
        actor_id=actor_id,
        review_id=review_id,
        title=body.title,
        comment=body.comment,
        rating=body.rating,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@review_router.delete("/{review_id}", response_model=StatusResponse)
async def delete_review(review_id: str, actor_id: str = Depends(principal_id)) -> StatusResponse:
    current_domain.process(DeleteReview(actor_id=actor_id, review_id=review_id), asynchronous=False)
    return StatusResponse()


@review_router.put("/{review_id}/moderate", response_model=TransitionResponse)
async def moderate_review(
    review_id: str, body: ModerateReviewRequest, actor_id: str = Depends(principal_id)
) -> TransitionResponse:
    """Hide, unhide, pin or unpin a review."""
    command = ModerateReview(actor_id=actor_id, review_id=review_id, action=body.action)
    return _transition(current_domain.process(command, asynchronous=False))


# ---------------------------------------------------------------------------
# Blogs
# ---------------------------------------------------------------------------
@blog_router.post("", status_code=201, response_model=IdResponse)
async def create_blog(body: CreateBlogRequest, actor_id: str = Depends(principal_id)) -> IdResponse:
    command = CreateBlog(
        actor_id=actor_id,
        title=body.title,
        content=body.content,
        excerpt=body.excerpt,
        slug=body.slug,
        status=body.status,
    )
    blog_id = current_domain.process(command, asynchronous=False)
    return IdResponse(id=blog_id)


@blog_router.get("", response_model=list[BlogResponse])
async def list_published_blogs(featured: bool | None = None) -> list[BlogResponse]:
    """Public listing, newest first."""
    return [_blog(b) for b in published_blogs(featured=featured)]


@blog_router.get("/mine", response_model=list[BlogResponse])
async def list_my_blogs(status: str | None = None, actor_id: str = Depends(principal_id)) -> list[BlogResponse]:
    """The caller's own blogs; Admins see all of them."""
    identity = resolve_identity(actor_id)
    return [_blog(b) for b in blogs_visible_to(identity, status=status)]


@blog_router.get("/{blog_id}", response_model=BlogViewResponse)
async def get_blog(
    blog_id: str, request: Request, identity: IdentityContext | None = Depends(optional_identity)
) -> BlogViewResponse:
    """Read a blog and count the viewer once."""
    blog, result = view_blog(blog_id, request_viewer(request, identity), audience=identity)
    return BlogViewResponse(blog=_blog(blog), new_view=result.new_view, total_views=result.total_views)


@blog_router.put("/{blog_id}", response_model=StatusResponse)
async def update_blog(blog_id: str, body: UpdateBlogRequest, actor_id: str = Depends(principal_id)) -> StatusResponse:
    command = UpdateBlog(
        actor_id=actor_id,
        blog_id=blog_id,
        title=body.title,
        content=body.content,
        excerpt=body.excerpt,
        slug=body.slug,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@blog_router.put("/{blog_id}/moderate", response_model=TransitionResponse)
async def moderate_blog(
    blog_id: str, body: ModerateBlogRequest, actor_id: str = Depends(principal_id)
) -> TransitionResponse:
    """Publish, archive, feature, delete, restore or flag a blog."""
    command = ModerateBlog(
        actor_id=actor_id,
        blog_id=blog_id,
        action=body.action,
        flag_reason=body.flag_reason,
        flag_details=body.flag_details,
    )
    return _transition(current_domain.process(command, asynchronous=False))
