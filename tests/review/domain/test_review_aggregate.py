"""Tests for the Review aggregate and Rating value object."""

import pytest
from protean.exceptions import ValidationError
from reviewhub.review.events import ReviewDeleted, ReviewEdited, ReviewHidden, ReviewPinned, ReviewSubmitted
from reviewhub.review.review import Rating, Review


def _review(**overrides):
    defaults = {"company_id": "comp-1", "user_id": "user-1", "rating": 4, "title": "Solid service"}
    defaults.update(overrides)
    review = Review.submit(**defaults)
    review._events.clear()
    return review


class TestRating:
    @pytest.mark.parametrize("score", [1, 2, 3, 4, 5])
    def test_valid_scores(self, score):
        assert Rating(score=score).score == score

    @pytest.mark.parametrize("score", [0, 6, -1])
    def test_out_of_range_rejected(self, score):
        with pytest.raises(ValidationError) as exc:
            Rating(score=score)
        assert "Rating must be between 1 and 5" in str(exc.value)


class TestSubmit:
    def test_submit_sets_defaults(self):
        review = Review.submit(company_id="comp-1", user_id="user-1", rating=5)
        assert review.rating.score == 5
        assert review.is_hidden is False
        assert review.is_pinned is False
        assert isinstance(review._events[-1], ReviewSubmitted)

    def test_submit_rejects_rating_of_six(self):
        with pytest.raises(ValidationError):
            Review.submit(company_id="comp-1", user_id="user-1", rating=6)

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            Review.submit(company_id="comp-1", user_id="user-1", rating=3, title="  ")


class TestEdit:
    def test_changed_rating_is_reported(self):
        review = _review()
        assert review.edit(rating=2) is True
        assert review.rating.score == 2
        event = review._events[-1]
        assert isinstance(event, ReviewEdited)
        assert event.previous_rating == 4

    def test_same_rating_is_not_a_change(self):
        review = _review()
        assert review.edit(rating=4, comment="Still good") is False
        assert review._events[-1].previous_rating is None

    def test_text_only_edit(self):
        review = _review()
        assert review.edit(title="Updated title") is False
        assert review.title == "Updated title"
        assert review.is_edited is True

    def test_invalid_rating_leaves_review_untouched(self):
        review = _review()
        with pytest.raises(ValidationError):
            review.edit(rating=0)
        assert review._events == []


class TestModerationFlags:
    def test_hide_and_pin_are_independent(self):
        review = _review()
        review.hide(moderator_id="admin-1")
        review.pin(moderator_id="admin-1")
        assert (review.is_hidden, review.is_pinned) == (True, True)
        assert [type(e) for e in review._events] == [ReviewHidden, ReviewPinned]

        review.unhide(moderator_id="admin-1")
        assert (review.is_hidden, review.is_pinned) == (False, True)

    def test_mark_deleted_records_rating(self):
        review = _review(rating=3)
        review.mark_deleted(deleted_by="admin-1")
        event = review._events[-1]
        assert isinstance(event, ReviewDeleted)
        assert event.rating == 3
