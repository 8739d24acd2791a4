"""Review aggregate: one user's rating of one company.

Reviews have no status. Moderation works on two independent flags,
`is_hidden` and `is_pinned`, and removal is a hard delete. Neither flag
touches the company's rating summary; only submission, a rating change and
deletion do.
"""

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text, ValueObject
from protean.utils.globals import current_domain

from reviewhub.clock import get_clock
from reviewhub.domain import reviewhub
from reviewhub.review.events import (
    ReviewDeleted,
    ReviewEdited,
    ReviewHidden,
    ReviewPinned,
    ReviewSubmitted,
    ReviewUnhidden,
    ReviewUnpinned,
)
from reviewhub.utils.query import fetch_all

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()


@reviewhub.value_object(part_of="Review")
class Rating:
    """A star rating from 1 to 5."""

    score = Integer(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < 1 or self.score > 5):
            raise ValidationError({"rating": ["Rating must be between 1 and 5"]})


@reviewhub.aggregate
class Review:
    company_id = Identifier(required=True)
    user_id = Identifier(required=True)

    rating = ValueObject(Rating, required=True)
    title = String(max_length=200)
    comment = Text()

    # Moderation
    is_hidden = Boolean(default=False)
    is_pinned = Boolean(default=False)

    is_edited = Boolean(default=False)
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def title_must_not_be_blank(self):
        if self.title is not None and len(self.title.strip()) == 0:
            raise ValidationError({"title": ["Review title cannot be empty"]})

    @classmethod
    def submit(cls, company_id, user_id, rating, title=None, comment=None):
        now = get_clock().now()
        review = cls(
            company_id=company_id,
            user_id=user_id,
            rating=Rating(score=rating),
            title=title,
            comment=comment,
            is_hidden=False,
            is_pinned=False,
            created_at=now,
            updated_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                company_id=str(company_id),
                user_id=str(user_id),
                rating=rating,
                title=title,
                comment=comment,
                submitted_at=now,
            )
        )
        return review

    def edit(self, title=_UNSET, comment=_UNSET, rating=_UNSET) -> bool:
        """Apply a partial update. Returns True when the rating value changed."""
        previous = self.rating.score
        rating_changed = rating is not _UNSET and rating != previous
        now = get_clock().now()

        with atomic_change(self):
            if title is not _UNSET:
                self.title = title
            if comment is not _UNSET:
                self.comment = comment
            if rating_changed:
                self.rating = Rating(score=rating)
            self.is_edited = True
            self.updated_at = now

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                company_id=str(self.company_id),
                title=self.title,
                comment=self.comment,
                rating=self.rating.score,
                previous_rating=previous if rating_changed else None,
                edited_at=now,
            )
        )
        return rating_changed

    def hide(self, moderator_id):
        now = get_clock().now()
        self.is_hidden = True
        self.updated_at = now
        self.raise_(
            ReviewHidden(
                review_id=str(self.id),
                company_id=str(self.company_id),
                moderator_id=str(moderator_id),
                hidden_at=now,
            )
        )

    def unhide(self, moderator_id):
        now = get_clock().now()
        self.is_hidden = False
        self.updated_at = now
        self.raise_(
            ReviewUnhidden(
                review_id=str(self.id),
                company_id=str(self.company_id),
                moderator_id=str(moderator_id),
                unhidden_at=now,
            )
        )

    def pin(self, moderator_id):
        now = get_clock().now()
        self.is_pinned = True
        self.updated_at = now
        self.raise_(
            ReviewPinned(
                review_id=str(self.id),
                company_id=str(self.company_id),
                moderator_id=str(moderator_id),
                pinned_at=now,
            )
        )

    def unpin(self, moderator_id):
        now = get_clock().now()
        self.is_pinned = False
        self.updated_at = now
        self.raise_(
            ReviewUnpinned(
                review_id=str(self.id),
                company_id=str(self.company_id),
                moderator_id=str(moderator_id),
                unpinned_at=now,
            )
        )

    def mark_deleted(self, deleted_by):
        """Record who removed the review. The row itself is deleted by the caller."""
        self.raise_(
            ReviewDeleted(
                review_id=str(self.id),
                company_id=str(self.company_id),
                user_id=str(self.user_id),
                rating=self.rating.score,
                deleted_by=str(deleted_by),
                deleted_at=get_clock().now(),
            )
        )


@reviewhub.repository(part_of=Review)
class ReviewRepository:
    def for_company(self, company_id) -> list[Review]:
        """Every stored review of the company, newest first."""
        return fetch_all(self._dao.query.filter(company_id=str(company_id)).order_by("-created_at"))

    def by_user(self, user_id) -> list[Review]:
        return fetch_all(self._dao.query.filter(user_id=str(user_id)).order_by("-created_at"))

    def find_by_author(self, company_id, user_id) -> Review | None:
        found = self._dao.query.filter(company_id=str(company_id), user_id=str(user_id)).all().items
        return found[0] if found else None


def review_company_key(command):
    """Lock key for a command on an existing review: the review's company, whose rating it may change."""
    review = current_domain.repository_for(Review).get(command.review_id)
    return ("company", str(review.company_id))
