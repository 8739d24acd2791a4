"""BDD tests for the company rating summary."""

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when
from reviewhub.review.editing import EditReview
from reviewhub.review.removal import DeleteReview

scenarios("features/company_rating.feature")


@when(parsers.cfparse("the review rated {rating:d} is deleted by its author"))
def author_deletes_review(reviews, rating):
    reviewer, review_id, _ = next(r for r in reviews if r[2] == rating)
    current_domain.process(DeleteReview(actor_id=reviewer.principal_id, review_id=review_id), asynchronous=False)


@when(parsers.cfparse("the review rated {rating:d} is deleted by an admin"))
def admin_deletes_review(reviews, admin, rating):
    _, review_id, _ = next(r for r in reviews if r[2] == rating)
    current_domain.process(DeleteReview(actor_id=admin.principal_id, review_id=review_id), asynchronous=False)


@when(parsers.cfparse("the first reviewer changes their rating to {rating:d}"))
def first_reviewer_edits(reviews, rating):
    reviewer, review_id, _ = reviews[0]
    current_domain.process(
        EditReview(actor_id=reviewer.principal_id, review_id=review_id, rating=rating), asynchronous=False
    )


@when(parsers.cfparse("the first reviewer tries to review the company again with {rating:d}"))
def first_reviewer_resubmits(company_id, reviews, submit_review, error, rating):
    reviewer, _, _ = reviews[0]
    try:
        submit_review(company_id, reviewer, rating)
    except ValidationError as exc:
        error["exc"] = exc


@then("the submission is refused as a duplicate")
def refused_as_duplicate(error):
    assert error["exc"] is not None
    assert "already reviewed" in str(error["exc"])
