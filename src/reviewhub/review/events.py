"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from reviewhub.domain import reviewhub


@reviewhub.event(part_of="Review")
class ReviewSubmitted:
    """A user reviewed a company."""

    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String()
    comment = Text()
    submitted_at = DateTime(required=True)


@reviewhub.event(part_of="Review")
class ReviewEdited:
    """The author changed the review. `previous_rating` is set only when the rating moved."""

    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    title = String()
    comment = Text()
    rating = Integer(required=True)
    previous_rating = Integer()
    edited_at = DateTime(required=True)


@reviewhub.event(part_of="Review")
class ReviewHidden:
    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    moderator_id = Identifier(required=True)
    hidden_at = DateTime(required=True)


@reviewhub.event(part_of="Review")
class ReviewUnhidden:
    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    moderator_id = Identifier(required=True)
    unhidden_at = DateTime(required=True)


@reviewhub.event(part_of="Review")
class ReviewPinned:
    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    moderator_id = Identifier(required=True)
    pinned_at = DateTime(required=True)


@reviewhub.event(part_of="Review")
class ReviewUnpinned:
    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    moderator_id = Identifier(required=True)
    unpinned_at = DateTime(required=True)


@reviewhub.event(part_of="Review")
class ReviewDeleted:
    """The review row was removed."""

    __version__ = 1

    review_id = Identifier(required=True)
    company_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True)
    deleted_by = Identifier(required=True)
    deleted_at = DateTime(required=True)
