"""EditReview: the author changes their review.

Only a changed rating value triggers a recomputation of the company summary.
"""

from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import resolve_identity
from reviewhub.company.rating import recompute_company_rating
from reviewhub.domain import reviewhub
from reviewhub.errors import PermissionDenied
from reviewhub.review.review import Review, review_company_key
from reviewhub.utils.concurrency import save_if_unchanged, serialized


@reviewhub.command(part_of="Review")
class EditReview:
    actor_id = Identifier(required=True)  # Must be the author
    review_id = Identifier(required=True)
    title = String(max_length=200)
    comment = Text()
    rating = Integer()


@reviewhub.command_handler(part_of=Review)
class EditReviewHandler:
    @serialized(review_company_key)
    @handle(EditReview)
    def edit_review(self, command):
        actor = resolve_identity(command.actor_id)
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        if not actor.owns(review.user_id):
            raise PermissionDenied("Only the review author can edit this review", review_id=str(review.id))

        kwargs = {}
        if command.title is not None:
            kwargs["title"] = command.title
        if command.comment is not None:
            kwargs["comment"] = command.comment
        if command.rating is not None:
            kwargs["rating"] = command.rating

        expected = review.revision
        rating_changed = review.edit(**kwargs)
        save_if_unchanged(repo, review, expected)

        if rating_changed:
            recompute_company_rating(review.company_id)
