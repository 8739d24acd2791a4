"""SubmitReview: a principal reviews a company.

One review per user per company. The check, the insert and the rating
recomputation run under the company's lock, which is held until the
handler's unit of work commits, so two simultaneous submissions cannot both
pass the check.
"""

from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import resolve_identity
from reviewhub.company.company import Company
from reviewhub.company.rating import recompute_company_rating
from reviewhub.domain import reviewhub
from reviewhub.review.review import Review
from reviewhub.utils.concurrency import serialized


@reviewhub.command(part_of="Review")
class SubmitReview:
    actor_id = Identifier(required=True)
    company_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String(max_length=200)
    comment = Text()


def _company_key(command):
    return ("company", str(command.company_id))


@reviewhub.command_handler(part_of=Review)
class SubmitReviewHandler:
    @serialized(_company_key)
    @handle(SubmitReview)
    def submit_review(self, command):
        actor = resolve_identity(command.actor_id)
        company = current_domain.repository_for(Company).get(command.company_id)
        repo = current_domain.repository_for(Review)

        if repo.find_by_author(company.id, actor.principal_id) is not None:
            raise ValidationError({"review": ["You have already reviewed this company"]})

        review = Review.submit(
            company_id=str(company.id),
            user_id=actor.principal_id,
            rating=command.rating,
            title=command.title,
            comment=command.comment,
        )
        repo.add(review)

        recompute_company_rating(company.id)
        return str(review.id)
