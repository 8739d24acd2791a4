"""Domain events for the Company aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from reviewhub.domain import reviewhub


@reviewhub.event(part_of="Company")
class CompanyRegistered:
    __version__ = 1

    company_id = Identifier(required=True)
    name = String(required=True)
    status = String(required=True)
    operator_id = Identifier()
    registered_by = Identifier()
    registered_at = DateTime(required=True)


@reviewhub.event(part_of="Company")
class CompanyDetailsUpdated:
    __version__ = 1

    company_id = Identifier(required=True)
    name = String()
    description = Text()
    category = String()
    website = String()
    updated_at = DateTime(required=True)


@reviewhub.event(part_of="Company")
class CompanyApproved:
    __version__ = 1

    company_id = Identifier(required=True)
    approved_by = Identifier()
    approved_at = DateTime(required=True)


@reviewhub.event(part_of="Company")
class CompanyRejected:
    __version__ = 1

    company_id = Identifier(required=True)
    rejected_by = Identifier()
    reason = Text()
    rejected_at = DateTime(required=True)


@reviewhub.event(part_of="Company")
class CompanyRatingRecomputed:
    """The derived rating summary moved to a new value."""

    __version__ = 1

    company_id = Identifier(required=True)
    ratings_aggregate = Float(required=True)
    total_reviews = Integer(required=True)
    recomputed_at = DateTime(required=True)
