"""BlogViewTracker: counts each viewer of a blog once.

Membership test, ledger append and counter increment form one unit: it runs
under a per-blog lock, commits before the lock is released, and is persisted
only if nobody wrote the blog in the meantime. A lost race reruns the unit,
which then sees the other writer's viewer and does nothing.
"""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviewhub.access.identity import IdentityContext
from reviewhub.blog.blog import Blog, BlogStatus
from reviewhub.utils.concurrency import run_serialized, save_if_unchanged
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ViewResult:
    new_view: bool
    total_views: int


class BlogViewTracker:
    def __init__(self, blogs) -> None:
        self.blogs = blogs

    def record_view(self, blog_id, viewer_identifier: str) -> ViewResult:
        return run_serialized(("blog", str(blog_id)), lambda: self._record_once(blog_id, viewer_identifier))

    def _record_once(self, blog_id, viewer_identifier: str) -> ViewResult:
        blog = self.blogs.get(str(blog_id))
        if blog.has_viewed(viewer_identifier):
            return ViewResult(new_view=False, total_views=blog.views)

        expected = blog.revision
        blog.record_view(viewer_identifier)
        save_if_unchanged(self.blogs, blog, expected)

        logger.debug("blog_view_recorded", blog_id=str(blog_id), viewer=viewer_identifier, total_views=blog.views)
        return ViewResult(new_view=True, total_views=blog.views)


def view_tracker() -> BlogViewTracker:
    return BlogViewTracker(current_domain.repository_for(Blog))


def _readable_by(blog: Blog, audience: IdentityContext | None) -> bool:
    if blog.is_deleted:
        return audience is not None and audience.is_admin
    if blog.status == BlogStatus.PUBLISHED.value:
        return True
    return audience is not None and (audience.is_staff or audience.owns(blog.author_id))


def view_blog(blog_id, viewer_identifier: str, audience: IdentityContext | None = None) -> tuple[Blog, ViewResult]:
    """Fetch a blog the audience may read and count the viewer.

    Drafts are visible to their author and staff, soft-deleted blogs to
    Admins only. Anything else is reported as missing.
    """
    repo = current_domain.repository_for(Blog)
    blog = repo.get(str(blog_id))
    if not _readable_by(blog, audience):
        raise ObjectNotFoundError(f"Blog with id {blog_id} does not exist")

    result = BlogViewTracker(repo).record_view(blog.id, viewer_identifier)
    return repo.get(str(blog.id)), result
