"""Read side for blogs."""

from protean.utils.globals import current_domain

from reviewhub.access.identity import IdentityContext
from reviewhub.blog.blog import Blog, BlogStatus, parse_status


def published_blogs(featured: bool | None = None) -> list[Blog]:
    """Public listing: published, not deleted, most recently published first."""
    filters = {"status": BlogStatus.PUBLISHED.value, "is_deleted": False}
    if featured is not None:
        filters["is_featured"] = featured
    blogs = current_domain.repository_for(Blog).all_blogs(**filters)
    return sorted(blogs, key=lambda b: b.published_at, reverse=True)


def blogs_visible_to(identity: IdentityContext, status: str | None = None) -> list[Blog]:
    """Admins see every blog, deleted ones included. Everyone else sees their own."""
    filters = {}
    if status is not None:
        filters["status"] = parse_status(status).value
    if not identity.is_admin:
        filters["author_id"] = identity.principal_id
        filters["is_deleted"] = False
    return current_domain.repository_for(Blog).all_blogs(**filters)
