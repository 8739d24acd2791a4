"""CompanyRatingEngine: keeps a company's rating summary equal to its reviews.

The summary is always recomputed from the full live review population,
never adjusted incrementally, so a lost update heals on the next write.
Recomputation is serialized per company, committed before the lock is
released and persisted with a revision check; a conflicting writer from
another process causes the whole read-compute-write to rerun.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviewhub.company.company import Company
from reviewhub.errors import ConsistencyError
from reviewhub.review.review import Review
from reviewhub.utils.concurrency import run_serialized, save_if_unchanged
from reviewhub.utils.config import custom_setting
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)

_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class RatingSummary:
    average: float
    count: int


def summarize(ratings) -> RatingSummary:
    """Mean rounded half-up to one decimal, and the count. Empty input is (0.0, 0)."""
    ratings = list(ratings)
    if not ratings:
        return RatingSummary(average=0.0, count=0)
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return RatingSummary(average=float(mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)), count=len(ratings))


class CompanyRatingEngine:
    def __init__(self, reviews, companies, count_hidden: bool | None = None) -> None:
        self.reviews = reviews
        self.companies = companies
        if count_hidden is None:
            count_hidden = bool(custom_setting("COUNT_HIDDEN_REVIEWS_IN_RATING", True))
        self.count_hidden = count_hidden

    def live_ratings(self, company_id) -> list[int]:
        reviews = self.reviews.for_company(company_id)
        if not self.count_hidden:
            reviews = [r for r in reviews if not r.is_hidden]
        return [r.rating.score for r in reviews]

    def recompute(self, company_id) -> RatingSummary:
        """Recompute and persist the summary for `company_id`."""
        return run_serialized(("company", str(company_id)), lambda: self._recompute_once(company_id))

    def _recompute_once(self, company_id) -> RatingSummary:
        try:
            company = self.companies.get(str(company_id))
        except ObjectNotFoundError:
            logger.error("rating_recompute_orphaned", company_id=str(company_id))
            raise ConsistencyError(
                f"Reviews reference company {company_id}, which does not exist",
                company_id=str(company_id),
            ) from None

        expected = company.revision
        summary = summarize(self.live_ratings(company_id))
        if company.apply_rating_summary(summary.average, summary.count):
            save_if_unchanged(self.companies, company, expected)

        logger.info(
            "company_rating_recomputed",
            company_id=str(company_id),
            average=summary.average,
            count=summary.count,
        )
        return summary


def rating_engine() -> CompanyRatingEngine:
    return CompanyRatingEngine(
        reviews=current_domain.repository_for(Review),
        companies=current_domain.repository_for(Company),
    )


def recompute_company_rating(company_id) -> RatingSummary:
    return rating_engine().recompute(company_id)
