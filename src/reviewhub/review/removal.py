"""DeleteReview: the author or an Admin removes a review for good."""

from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import resolve_identity
from reviewhub.company.rating import recompute_company_rating
from reviewhub.domain import reviewhub
from reviewhub.moderation.state_machine import ModerationAction, moderation_machine
from reviewhub.review.review import Review, review_company_key
from reviewhub.utils.concurrency import serialized


@reviewhub.command(part_of="Review")
class DeleteReview:
    actor_id = Identifier(required=True)
    review_id = Identifier(required=True)


@reviewhub.command_handler(part_of=Review)
class DeleteReviewHandler:
    @serialized(review_company_key)
    @handle(DeleteReview)
    def delete_review(self, command):
        actor = resolve_identity(command.actor_id)
        review = current_domain.repository_for(Review).get(command.review_id)
        company_id = str(review.company_id)

        moderation_machine().transition(review, ModerationAction.DELETE, actor)
        recompute_company_rating(company_id)
