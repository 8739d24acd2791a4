"""Blog aggregate: authored content with a moderated lifecycle.

Status:
    DRAFT → PUBLISHED
    PUBLISHED → DRAFT | ARCHIVED
    ARCHIVED → PUBLISHED | DRAFT

Orthogonal to status a blog can be featured, soft-deleted and flagged. The
flag is a single value object, so it is either wholly present or absent.
`views` always equals the number of distinct viewers in `viewed_by`.
"""

import re
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from reviewhub.blog.events import (
    BlogArchived,
    BlogCreated,
    BlogFeatured,
    BlogFlagged,
    BlogPermanentlyDeleted,
    BlogPublished,
    BlogRestored,
    BlogRevised,
    BlogSoftDeleted,
    BlogUnfeatured,
    BlogUnarchived,
    BlogUnflagged,
    BlogUnpublished,
)
from reviewhub.clock import get_clock
from reviewhub.domain import reviewhub
from reviewhub.errors import InvalidTransition
from reviewhub.utils.query import fetch_all

_UNSET = object()


class BlogStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class FlagReason(Enum):
    SPAM = "Spam"
    INAPPROPRIATE_CONTENT = "Inappropriate Content"
    MISINFORMATION = "Misinformation"
    DUPLICATE_CONTENT = "Duplicate Content"
    OTHER = "Other"


_VALID_TRANSITIONS = {
    BlogStatus.DRAFT: {BlogStatus.PUBLISHED},
    BlogStatus.PUBLISHED: {BlogStatus.DRAFT, BlogStatus.ARCHIVED},
    BlogStatus.ARCHIVED: {BlogStatus.PUBLISHED, BlogStatus.DRAFT},
}


def parse_status(value) -> BlogStatus:
    if isinstance(value, BlogStatus):
        return value
    try:
        return BlogStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in BlogStatus)
        raise ValidationError({"status": [f"Unknown status '{value}'. Must be one of: {allowed}"]}) from None


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "untitled"


@reviewhub.value_object(part_of="Blog")
class Flag:
    reason = String(required=True, choices=FlagReason)
    additional_details = Text()
    flagged_by = Identifier(required=True)
    flagged_at = DateTime(required=True)


@reviewhub.entity(part_of="Blog")
class BlogView:
    """A distinct viewer of the blog."""

    identifier = String(required=True, max_length=100)
    viewed_at = DateTime(required=True)


@reviewhub.aggregate
class Blog:
    title = String(required=True, max_length=200)
    slug = String(required=True, max_length=220)
    excerpt = Text()
    content = Text(required=True)
    author_id = Identifier(required=True)

    status = String(choices=BlogStatus, default=BlogStatus.DRAFT.value)
    published_at = DateTime()
    is_featured = Boolean(default=False)

    is_deleted = Boolean(default=False)
    deleted_at = DateTime()

    is_flagged = Boolean(default=False)
    flag = ValueObject(Flag)

    viewed_by = HasMany(BlogView)
    views = Integer(default=0)

    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def views_match_distinct_viewers(self):
        if self.views != len(self.viewed_by):
            raise ValidationError({"views": ["View count must equal the number of distinct viewers"]})

    @invariant.post
    def viewers_are_unique(self):
        identifiers = [v.identifier for v in self.viewed_by]
        if len(identifiers) != len(set(identifiers)):
            raise ValidationError({"viewed_by": ["A viewer can only be recorded once"]})

    @invariant.post
    def flag_is_all_or_nothing(self):
        if bool(self.is_flagged) != (self.flag is not None):
            raise ValidationError({"flag": ["Flag details must be present exactly when the blog is flagged"]})

    @invariant.post
    def published_blogs_have_publish_time(self):
        if self.status == BlogStatus.PUBLISHED.value and self.published_at is None:
            raise ValidationError({"published_at": ["A published blog must have a publish time"]})

    @classmethod
    def create(cls, title, content, author_id, excerpt=None, slug=None, status=BlogStatus.DRAFT):
        status = parse_status(status)
        if status == BlogStatus.ARCHIVED:
            raise ValidationError({"status": ["A blog cannot be created archived"]})

        now = get_clock().now()
        blog = cls(
            title=title,
            slug=slug or slugify(title),
            excerpt=excerpt,
            content=content,
            author_id=author_id,
            status=status.value,
            published_at=now if status == BlogStatus.PUBLISHED else None,
            views=0,
            created_at=now,
            updated_at=now,
        )
        blog.raise_(
            BlogCreated(
                blog_id=str(blog.id),
                author_id=str(author_id),
                title=title,
                slug=blog.slug,
                status=blog.status,
                created_at=now,
            )
        )
        return blog

    def revise(self, revised_by, title=_UNSET, excerpt=_UNSET, content=_UNSET, slug=_UNSET):
        now = get_clock().now()
        with atomic_change(self):
            if title is not _UNSET:
                self.title = title
            if excerpt is not _UNSET:
                self.excerpt = excerpt
            if content is not _UNSET:
                self.content = content
            if slug is not _UNSET:
                self.slug = slug
            self.updated_at = now

        self.raise_(
            BlogRevised(
                blog_id=str(self.id),
                title=self.title,
                slug=self.slug,
                excerpt=self.excerpt,
                revised_by=str(revised_by),
                revised_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def can_transition_to(self, target: BlogStatus) -> bool:
        return target in _VALID_TRANSITIONS[BlogStatus(self.status)]

    def _assert_can_transition(self, target: BlogStatus):
        if not self.can_transition_to(target):
            raise InvalidTransition(
                f"Cannot move a blog from {self.status} to {target.value}",
                blog_id=str(self.id),
            )

    def publish(self, published_by):
        """Publish the blog. Republishing keeps the original publish time."""
        if self.status == BlogStatus.PUBLISHED.value:
            return
        self._assert_can_transition(BlogStatus.PUBLISHED)

        now = get_clock().now()
        with atomic_change(self):
            self.status = BlogStatus.PUBLISHED.value
            self.published_at = now
            self.updated_at = now
        self.raise_(
            BlogPublished(
                blog_id=str(self.id),
                author_id=str(self.author_id),
                published_by=str(published_by),
                published_at=now,
            )
        )

    def unpublish(self, unpublished_by):
        if self.status != BlogStatus.PUBLISHED.value:
            raise InvalidTransition(f"Only published blogs can be unpublished, not {self.status}", blog_id=str(self.id))
        now = get_clock().now()
        self.status = BlogStatus.DRAFT.value
        self.updated_at = now
        self.raise_(BlogUnpublished(blog_id=str(self.id), unpublished_by=str(unpublished_by), unpublished_at=now))

    def archive(self, archived_by):
        self._assert_can_transition(BlogStatus.ARCHIVED)
        now = get_clock().now()
        self.status = BlogStatus.ARCHIVED.value
        self.updated_at = now
        self.raise_(BlogArchived(blog_id=str(self.id), archived_by=str(archived_by), archived_at=now))

    def unarchive(self, unarchived_by):
        """Send an archived blog back to draft."""
        if self.status != BlogStatus.ARCHIVED.value:
            raise InvalidTransition(f"Only archived blogs can be unarchived, not {self.status}", blog_id=str(self.id))
        now = get_clock().now()
        self.status = BlogStatus.DRAFT.value
        self.updated_at = now
        self.raise_(BlogUnarchived(blog_id=str(self.id), unarchived_by=str(unarchived_by), unarchived_at=now))

    # -------------------------------------------------------------------
    # Featuring
    # -------------------------------------------------------------------
    def feature(self, featured_by):
        now = get_clock().now()
        self.is_featured = True
        self.updated_at = now
        self.raise_(BlogFeatured(blog_id=str(self.id), featured_by=str(featured_by), featured_at=now))

    def unfeature(self, unfeatured_by):
        now = get_clock().now()
        self.is_featured = False
        self.updated_at = now
        self.raise_(BlogUnfeatured(blog_id=str(self.id), unfeatured_by=str(unfeatured_by), unfeatured_at=now))

    # -------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------
    def soft_delete(self, deleted_by):
        now = get_clock().now()
        with atomic_change(self):
            self.is_deleted = True
            self.deleted_at = now
            self.updated_at = now
        self.raise_(BlogSoftDeleted(blog_id=str(self.id), deleted_by=str(deleted_by), deleted_at=now))

    def restore(self, restored_by):
        now = get_clock().now()
        with atomic_change(self):
            self.is_deleted = False
            self.deleted_at = None
            self.updated_at = now
        self.raise_(BlogRestored(blog_id=str(self.id), restored_by=str(restored_by), restored_at=now))

    def mark_permanently_deleted(self, deleted_by):
        """Record the removal. The row itself is deleted by the caller."""
        self.raise_(
            BlogPermanentlyDeleted(
                blog_id=str(self.id),
                deleted_by=str(deleted_by),
                deleted_at=get_clock().now(),
            )
        )

    # -------------------------------------------------------------------
    # Flagging
    # -------------------------------------------------------------------
    def flag_as(self, reason: FlagReason, flagged_by, additional_details=None):
        now = get_clock().now()
        with atomic_change(self):
            self.is_flagged = True
            self.flag = Flag(
                reason=reason.value,
                additional_details=additional_details,
                flagged_by=flagged_by,
                flagged_at=now,
            )
            self.updated_at = now
        self.raise_(
            BlogFlagged(
                blog_id=str(self.id),
                reason=reason.value,
                additional_details=additional_details,
                flagged_by=str(flagged_by),
                flagged_at=now,
            )
        )

    def unflag(self, unflagged_by):
        now = get_clock().now()
        with atomic_change(self):
            self.is_flagged = False
            self.flag = None
            self.updated_at = now
        self.raise_(BlogUnflagged(blog_id=str(self.id), unflagged_by=str(unflagged_by), unflagged_at=now))

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def has_viewed(self, identifier: str) -> bool:
        return any(v.identifier == identifier for v in self.viewed_by)

    def record_view(self, identifier: str) -> bool:
        """Register `identifier` as a viewer. Returns False if it already was one."""
        if self.has_viewed(identifier):
            return False
        with atomic_change(self):
            self.add_viewed_by(BlogView(identifier=identifier, viewed_at=get_clock().now()))
            self.views = (self.views or 0) + 1
        return True


@reviewhub.repository(part_of=Blog)
class BlogRepository:
    def all_blogs(self, **filters) -> list[Blog]:
        """Every blog matching `filters`, newest first."""
        queryset = self._dao.query.filter(**filters) if filters else self._dao.query
        return fetch_all(queryset.order_by("-created_at"))
