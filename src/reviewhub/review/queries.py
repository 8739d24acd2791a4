"""Read side for reviews."""

from protean.utils.globals import current_domain

from reviewhub.review.review import Review


def reviews_for_company(company_id, include_hidden: bool = False) -> list[Review]:
    """Pinned reviews first, then newest first. Hidden reviews only on request."""
    reviews = current_domain.repository_for(Review).for_company(company_id)
    if not include_hidden:
        reviews = [r for r in reviews if not r.is_hidden]
    # Stable sort keeps the newest-first order inside each group
    return sorted(reviews, key=lambda r: not r.is_pinned)


def reviews_by_user(user_id) -> list[Review]:
    return current_domain.repository_for(Review).by_user(user_id)
