"""ModerateReview: hide, unhide, pin or unpin a review.

Moderation flags never change the company rating summary.
"""

from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import resolve_identity
from reviewhub.domain import reviewhub
from reviewhub.moderation.state_machine import moderation_machine
from reviewhub.review.review import Review, review_company_key
from reviewhub.utils.concurrency import serialized


@reviewhub.command(part_of="Review")
class ModerateReview:
    actor_id = Identifier(required=True)
    review_id = Identifier(required=True)
    action = String(required=True)  # "hide", "unhide", "pin" or "unpin"


@reviewhub.command_handler(part_of=Review)
class ModerateReviewHandler:
    @serialized(review_company_key)
    @handle(ModerateReview)
    def moderate_review(self, command):
        actor = resolve_identity(command.actor_id)
        review = current_domain.repository_for(Review).get(command.review_id)
        return moderation_machine().transition(review, command.action, actor)
