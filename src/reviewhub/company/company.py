"""Company aggregate: a reviewable business listing.

`ratings_aggregate` and `total_reviews` are derived from the company's live
reviews and are only written by the rating engine through
`apply_rating_summary`; no command accepts them as input.

State Machine:
    PENDING → APPROVED | REJECTED
    APPROVED → REJECTED
    REJECTED → APPROVED
"""

from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from reviewhub.clock import get_clock
from reviewhub.company.events import (
    CompanyApproved,
    CompanyDetailsUpdated,
    CompanyRatingRecomputed,
    CompanyRegistered,
    CompanyRejected,
)
from reviewhub.domain import reviewhub

_UNSET = object()


class CompanyStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


_VALID_TRANSITIONS = {
    CompanyStatus.PENDING: {CompanyStatus.APPROVED, CompanyStatus.REJECTED},
    CompanyStatus.APPROVED: {CompanyStatus.REJECTED},
    CompanyStatus.REJECTED: {CompanyStatus.APPROVED},
}


@reviewhub.aggregate
class Company:
    name = String(required=True, max_length=200)
    description = Text()
    category = String(max_length=100)
    website = String(max_length=500)

    status = String(choices=CompanyStatus, default=CompanyStatus.PENDING.value)
    operator_id = Identifier()
    registered_by = Identifier()

    # Derived from reviews
    ratings_aggregate = Float(default=0.0)
    total_reviews = Integer(default=0)

    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def ratings_aggregate_within_scale(self):
        if self.ratings_aggregate is not None and not 0 <= self.ratings_aggregate <= 5:
            raise ValidationError({"ratings_aggregate": ["Rating aggregate must be between 0 and 5"]})

    @invariant.post
    def total_reviews_not_negative(self):
        if self.total_reviews is not None and self.total_reviews < 0:
            raise ValidationError({"total_reviews": ["Review count cannot be negative"]})

    @invariant.post
    def no_reviews_means_no_rating(self):
        if self.total_reviews == 0 and self.ratings_aggregate:
            raise ValidationError({"ratings_aggregate": ["A company without reviews has no rating"]})

    @invariant.post
    def name_must_not_be_blank(self):
        if self.name is not None and not self.name.strip():
            raise ValidationError({"name": ["Company name cannot be empty"]})

    @classmethod
    def register(
        cls,
        name,
        registered_by,
        status=CompanyStatus.PENDING,
        operator_id=None,
        description=None,
        category=None,
        website=None,
    ):
        now = get_clock().now()
        company = cls(
            name=name,
            description=description,
            category=category,
            website=website,
            status=CompanyStatus(status).value,
            operator_id=operator_id,
            registered_by=registered_by,
            ratings_aggregate=0.0,
            total_reviews=0,
            created_at=now,
            updated_at=now,
        )
        company.raise_(
            CompanyRegistered(
                company_id=str(company.id),
                name=name,
                status=company.status,
                operator_id=str(operator_id) if operator_id else None,
                registered_by=str(registered_by) if registered_by else None,
                registered_at=now,
            )
        )
        return company

    def _assert_can_transition(self, target):
        current = CompanyStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def update_details(self, name=_UNSET, description=_UNSET, category=_UNSET, website=_UNSET):
        now = get_clock().now()
        with atomic_change(self):
            if name is not _UNSET:
                self.name = name
            if description is not _UNSET:
                self.description = description
            if category is not _UNSET:
                self.category = category
            if website is not _UNSET:
                self.website = website
            self.updated_at = now

        self.raise_(
            CompanyDetailsUpdated(
                company_id=str(self.id),
                name=self.name,
                description=self.description,
                category=self.category,
                website=self.website,
                updated_at=now,
            )
        )

    def approve(self, approved_by):
        self._assert_can_transition(CompanyStatus.APPROVED)
        now = get_clock().now()
        self.status = CompanyStatus.APPROVED.value
        self.updated_at = now
        self.raise_(CompanyApproved(company_id=str(self.id), approved_by=str(approved_by), approved_at=now))

    def reject(self, rejected_by, reason=None):
        self._assert_can_transition(CompanyStatus.REJECTED)
        now = get_clock().now()
        self.status = CompanyStatus.REJECTED.value
        self.updated_at = now
        self.raise_(
            CompanyRejected(
                company_id=str(self.id),
                rejected_by=str(rejected_by),
                reason=reason,
                rejected_at=now,
            )
        )

    def apply_rating_summary(self, average: float, count: int) -> bool:
        """Store a freshly computed summary. Returns False when nothing moved."""
        if self.ratings_aggregate == average and self.total_reviews == count:
            return False

        now = get_clock().now()
        with atomic_change(self):
            self.ratings_aggregate = average
            self.total_reviews = count
            self.updated_at = now

        self.raise_(
            CompanyRatingRecomputed(
                company_id=str(self.id),
                ratings_aggregate=average,
                total_reviews=count,
                recomputed_at=now,
            )
        )
        return True
