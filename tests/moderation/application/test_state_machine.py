"""Application tests for ModerationStateMachine."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError
from reviewhub.access.principal import Role
from reviewhub.blog.blog import Blog, BlogStatus, BlogView
from reviewhub.errors import ConcurrencyConflict, InvalidTransition, PermissionDenied
from reviewhub.moderation.state_machine import ModerationAction, TransitionResult, moderation_machine, parse_action
from reviewhub.review.review import Review

BLOG_EDITOR = {"commonPermissions": {"blog": {"read": True, "update": True}}}
BLOG_DELETER = {"commonPermissions": {"blog": {"read": True, "delete": True}}}


def _blog(blog_id):
    return current_domain.repository_for(Blog).get(blog_id)


def _move(blog_id, action, actor, **payload):
    return moderation_machine().transition(_blog(blog_id), action, actor, payload=payload)


class TestParseAction:
    @pytest.mark.parametrize(
        "raw, action",
        [
            ("publish", ModerationAction.PUBLISH),
            ("softDelete", ModerationAction.SOFT_DELETE),
            ("soft-delete", ModerationAction.SOFT_DELETE),
            ("permanentDelete", ModerationAction.PERMANENT_DELETE),
            (ModerationAction.PIN, ModerationAction.PIN),
        ],
    )
    def test_accepted_spellings(self, raw, action):
        assert parse_action(raw) is action

    def test_unknown_action(self):
        with pytest.raises(InvalidTransition):
            parse_action("promote")


class TestPublishing:
    def test_admin_publishes_draft(self, make_blog, user, admin, clock):
        blog_id = make_blog(user)

        result = _move(blog_id, "publish", admin)

        assert isinstance(result, TransitionResult)
        assert result.changed is True
        assert result.state["status"] == BlogStatus.PUBLISHED.value
        assert _blog(blog_id).published_at == clock.now()

    def test_republish_keeps_publish_time(self, make_blog, user, admin, clock):
        blog_id = make_blog(user)
        _move(blog_id, "publish", admin)
        first = _blog(blog_id).published_at
        revision = _blog(blog_id).revision

        clock.advance(hours=3)
        result = _move(blog_id, "publish", admin)

        assert result.changed is False
        assert _blog(blog_id).published_at == first
        assert _blog(blog_id).revision == revision

    def test_owner_cannot_publish_existing_draft(self, make_blog, user):
        blog_id = make_blog(user)
        with pytest.raises(PermissionDenied):
            _move(blog_id, "publish", user)
        assert _blog(blog_id).status == BlogStatus.DRAFT.value

    def test_sub_admin_with_update_grant_publishes(self, make_blog, user, make_principal):
        editor = make_principal(Role.SUB_ADMIN, permissions=BLOG_EDITOR)
        blog_id = make_blog(user)

        _move(blog_id, "publish", editor)

        assert _blog(blog_id).status == BlogStatus.PUBLISHED.value

    def test_sub_admin_without_grant_is_denied(self, make_blog, user, make_principal):
        reader = make_principal(Role.SUB_ADMIN, permissions={"commonPermissions": {"blog": {"read": True}}})
        blog_id = make_blog(user)

        with pytest.raises(PermissionDenied) as exc:
            _move(blog_id, "publish", reader)
        assert exc.value.reason == "not authorized"

    def test_operator_archives_published(self, make_blog, user, operator):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "archive", operator)
        assert _blog(blog_id).status == BlogStatus.ARCHIVED.value

    def test_draft_cannot_be_archived(self, make_blog, user, admin):
        blog_id = make_blog(user)
        with pytest.raises(InvalidTransition):
            _move(blog_id, "archive", admin)

    def test_unpublish_only_leaves_published(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "archive", admin)

        with pytest.raises(InvalidTransition):
            _move(blog_id, "unpublish", admin)
        assert _blog(blog_id).status == BlogStatus.ARCHIVED.value

    def test_unarchive_returns_archived_to_draft(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "archive", admin)

        result = _move(blog_id, "unarchive", admin)

        assert result.state["status"] == BlogStatus.DRAFT.value

    def test_unarchive_requires_archived_blog(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        with pytest.raises(InvalidTransition):
            _move(blog_id, "unarchive", admin)

    def test_review_actions_do_not_apply_to_blogs(self, make_blog, user, admin):
        blog_id = make_blog(user)
        with pytest.raises(InvalidTransition):
            _move(blog_id, "hide", admin)


class TestFeaturing:
    def test_feature_then_unfeature(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        assert _move(blog_id, "feature", admin).state["is_featured"] is True
        assert _move(blog_id, "unfeature", admin).state["is_featured"] is False

    def test_feature_twice_is_invalid(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "feature", admin)
        with pytest.raises(InvalidTransition):
            _move(blog_id, "feature", admin)

    def test_user_cannot_feature(self, make_blog, user):
        blog_id = make_blog(user, status="published")
        with pytest.raises(PermissionDenied):
            _move(blog_id, "feature", user)


class TestDeletion:
    def test_owner_soft_deletes(self, make_blog, user):
        blog_id = make_blog(user)
        result = _move(blog_id, "soft_delete", user)
        assert result.state["is_deleted"] is True
        assert _blog(blog_id).deleted_at is not None

    def test_other_user_cannot_soft_delete(self, make_blog, make_principal):
        author, other = make_principal(), make_principal()
        blog_id = make_blog(author)
        with pytest.raises(PermissionDenied):
            _move(blog_id, "soft_delete", other)

    def test_sub_admin_needs_delete_grant(self, make_blog, user, make_principal):
        editor = make_principal(Role.SUB_ADMIN, permissions=BLOG_EDITOR)
        deleter = make_principal(Role.SUB_ADMIN, permissions=BLOG_DELETER)
        blog_id = make_blog(user)

        with pytest.raises(PermissionDenied):
            _move(blog_id, "softDelete", editor)
        _move(blog_id, "softDelete", deleter)
        assert _blog(blog_id).is_deleted is True

    @pytest.mark.parametrize("action", ["publish", "feature", "flag", "unpublish"])
    def test_deleted_blog_only_accepts_restore_or_purge(self, make_blog, user, admin, action):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "soft_delete", user)

        with pytest.raises(InvalidTransition):
            _move(blog_id, action, admin, reason="Spam")

    def test_restore(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "soft_delete", user)

        _move(blog_id, "restore", admin)

        blog = _blog(blog_id)
        assert (blog.is_deleted, blog.deleted_at, blog.status) == (False, None, BlogStatus.PUBLISHED.value)

    def test_restore_requires_deleted_blog(self, make_blog, user, admin):
        blog_id = make_blog(user)
        with pytest.raises(InvalidTransition):
            _move(blog_id, "restore", admin)

    def test_permanent_delete_is_admin_only(self, make_blog, user, operator):
        blog_id = make_blog(user)
        for actor in (user, operator):
            with pytest.raises(PermissionDenied):
                _move(blog_id, "permanent_delete", actor)
        assert _blog(blog_id) is not None

    def test_permanent_delete_removes_blog_and_views(self, make_blog, user, admin):
        from reviewhub.blog.viewing import view_tracker

        blog_id = make_blog(user, status="published")
        view_tracker().record_view(blog_id, "user_1")
        view_tracker().record_view(blog_id, "user_2")

        result = _move(blog_id, "permanentDelete", admin)

        assert result.removed is True
        with pytest.raises(ObjectNotFoundError):
            _blog(blog_id)
        remaining = current_domain.repository_for(BlogView)._dao.query.all().items
        assert remaining == []


class TestFlagging:
    def test_any_user_flags_with_details(self, make_blog, make_principal):
        author, reader = make_principal(), make_principal()
        blog_id = make_blog(author, status="published")

        result = _move(blog_id, "flag", reader, reason="Misinformation", details="Wrong dates")

        assert result.state["is_flagged"] is True
        assert result.state["flag_reason"] == "Misinformation"
        blog = _blog(blog_id)
        assert blog.flag.additional_details == "Wrong dates"
        assert str(blog.flag.flagged_by) == reader.principal_id

    @pytest.mark.parametrize("reason", [None, "Boring", "spam"])
    def test_invalid_reason_changes_nothing(self, make_blog, user, admin, reason):
        blog_id = make_blog(user, status="published")

        with pytest.raises(InvalidTransition):
            _move(blog_id, "flag", admin, reason=reason)

        blog = _blog(blog_id)
        assert (blog.is_flagged, blog.flag, blog.revision) == (False, None, 0)

    def test_unflag_clears_flag(self, make_blog, user, admin):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "flag", user, reason="Spam")

        _move(blog_id, "unflag", admin)

        blog = _blog(blog_id)
        assert blog.is_flagged is False
        assert blog.flag is None

    def test_user_cannot_unflag(self, make_blog, user):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "flag", user, reason="Other")
        with pytest.raises(PermissionDenied):
            _move(blog_id, "unflag", user)

    def test_flag_twice_is_invalid(self, make_blog, user):
        blog_id = make_blog(user, status="published")
        _move(blog_id, "flag", user, reason="Other")
        with pytest.raises(InvalidTransition):
            _move(blog_id, "flag", user, reason="Spam")


class TestReviewModeration:
    def test_admin_hides_and_pins(self, make_company, submit_review, user, admin):
        review_id = submit_review(make_company(), user, 4)
        machine = moderation_machine()
        repo = current_domain.repository_for(Review)

        machine.transition(repo.get(review_id), "hide", admin)
        result = machine.transition(repo.get(review_id), "pin", admin)

        assert result.state == {"is_hidden": True, "is_pinned": True}

    @pytest.mark.parametrize("role", [Role.OPERATOR, Role.SUB_ADMIN, Role.USER])
    def test_hide_is_admin_only(self, make_company, submit_review, user, make_principal, role):
        review_id = submit_review(make_company(), user, 4)
        actor = make_principal(role, permissions=None if role == Role.USER else {})

        with pytest.raises(PermissionDenied):
            moderation_machine().transition(current_domain.repository_for(Review).get(review_id), "hide", actor)

    def test_blog_actions_do_not_apply_to_reviews(self, make_company, submit_review, user, admin):
        review_id = submit_review(make_company(), user, 4)
        with pytest.raises(InvalidTransition):
            moderation_machine().transition(current_domain.repository_for(Review).get(review_id), "publish", admin)


class TestConflicts:
    def test_stale_blog_transition_is_rejected(self, make_blog, user, admin):
        blog_id = make_blog(user)
        first, second = _blog(blog_id), _blog(blog_id)
        machine = moderation_machine()

        machine.transition(first, "publish", admin)

        with pytest.raises(ConcurrencyConflict):
            machine.transition(second, "soft_delete", admin)
        blog = _blog(blog_id)
        assert (blog.status, blog.is_deleted) == (BlogStatus.PUBLISHED.value, False)

    def test_stale_review_delete_is_rejected(self, make_company, submit_review, user, admin):
        review_id = submit_review(make_company(), user, 4)
        repo = current_domain.repository_for(Review)
        first, second = repo.get(review_id), repo.get(review_id)
        machine = moderation_machine()

        machine.transition(first, "pin", admin)

        with pytest.raises(ConcurrencyConflict):
            machine.transition(second, "delete", admin)
        assert repo.get(review_id).is_pinned is True
