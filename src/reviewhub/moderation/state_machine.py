"""ModerationStateMachine: every lifecycle change of a blog or a review.

A transition is checked in three steps before anything is written:

1. the action must apply to the kind of item,
2. the actor's role (and, for SubAdmins, their permission tree) must allow it,
3. the item's current state must accept it.

The change is then persisted against the revision the item was loaded with,
so two conflicting transitions on the same item cannot both succeed. Blog
transitions lock the blog; review transitions lock the review's company,
the key every other review write holds.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import partial

from protean.utils.globals import current_domain

from reviewhub.access.evaluator import PermissionEvaluator, permission_evaluator
from reviewhub.access.identity import IdentityContext
from reviewhub.access.modules import Capability, Module, module_candidates
from reviewhub.access.principal import Role
from reviewhub.blog.blog import Blog, BlogStatus, BlogView, FlagReason
from reviewhub.errors import InvalidTransition, PermissionDenied
from reviewhub.review.review import Review
from reviewhub.utils.concurrency import delete_if_unchanged, locks, save_if_unchanged, unit_of_work
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)


class ModerationAction(Enum):
    # Blogs
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"
    FEATURE = "feature"
    UNFEATURE = "unfeature"
    SOFT_DELETE = "soft_delete"
    RESTORE = "restore"
    PERMANENT_DELETE = "permanent_delete"
    FLAG = "flag"
    UNFLAG = "unflag"
    # Reviews
    HIDE = "hide"
    UNHIDE = "unhide"
    PIN = "pin"
    UNPIN = "unpin"
    DELETE = "delete"


BLOG_ACTIONS = frozenset(
    {
        ModerationAction.PUBLISH,
        ModerationAction.UNPUBLISH,
        ModerationAction.ARCHIVE,
        ModerationAction.UNARCHIVE,
        ModerationAction.FEATURE,
        ModerationAction.UNFEATURE,
        ModerationAction.SOFT_DELETE,
        ModerationAction.RESTORE,
        ModerationAction.PERMANENT_DELETE,
        ModerationAction.FLAG,
        ModerationAction.UNFLAG,
    }
)
REVIEW_ACTIONS = frozenset(
    {
        ModerationAction.HIDE,
        ModerationAction.UNHIDE,
        ModerationAction.PIN,
        ModerationAction.UNPIN,
        ModerationAction.DELETE,
    }
)

# Editorial actions reserved for staff
STAFF_BLOG_ACTIONS = frozenset(
    {
        ModerationAction.PUBLISH,
        ModerationAction.UNPUBLISH,
        ModerationAction.ARCHIVE,
        ModerationAction.UNARCHIVE,
        ModerationAction.FEATURE,
        ModerationAction.UNFEATURE,
        ModerationAction.UNFLAG,
        ModerationAction.RESTORE,
    }
)

# The only actions a soft-deleted blog accepts
DELETED_BLOG_ACTIONS = frozenset({ModerationAction.RESTORE, ModerationAction.PERMANENT_DELETE})

BLOG_BYPASS_ROLES = frozenset({Role.ADMIN, Role.OPERATOR})

_STATUS_TARGETS = {
    ModerationAction.PUBLISH: BlogStatus.PUBLISHED,
    ModerationAction.UNPUBLISH: BlogStatus.DRAFT,
    ModerationAction.ARCHIVE: BlogStatus.ARCHIVED,
    ModerationAction.UNARCHIVE: BlogStatus.DRAFT,
}

# Actions that only leave one particular status
_STATUS_SOURCES = {
    ModerationAction.UNPUBLISH: BlogStatus.PUBLISHED,
    ModerationAction.UNARCHIVE: BlogStatus.ARCHIVED,
}


def parse_action(action) -> ModerationAction:
    if isinstance(action, ModerationAction):
        return action
    normalized = str(action).strip().lower().replace("-", "_").replace(" ", "_")
    # Accept "softDelete" / "permanentDelete" as well
    normalized = {"softdelete": "soft_delete", "permanentdelete": "permanent_delete"}.get(normalized, normalized)
    try:
        return ModerationAction(normalized)
    except ValueError:
        raise InvalidTransition(f"Unknown moderation action '{action}'") from None


def parse_flag_reason(reason) -> FlagReason:
    try:
        return FlagReason(reason)
    except ValueError:
        allowed = ", ".join(r.value for r in FlagReason)
        raise InvalidTransition(f"Invalid flag reason '{reason}'. Must be one of: {allowed}") from None


@dataclass(frozen=True)
class TransitionResult:
    item_id: str
    kind: str
    action: ModerationAction
    changed: bool = True
    removed: bool = False
    state: dict = field(default_factory=dict)


def _blog_state(blog: Blog) -> dict:
    return {
        "status": blog.status,
        "published_at": blog.published_at,
        "is_featured": blog.is_featured,
        "is_deleted": blog.is_deleted,
        "is_flagged": blog.is_flagged,
        "flag_reason": blog.flag.reason if blog.flag else None,
    }


def _review_state(review: Review) -> dict:
    return {"is_hidden": review.is_hidden, "is_pinned": review.is_pinned}


class ModerationStateMachine:
    def __init__(self, blogs, reviews, evaluator: PermissionEvaluator) -> None:
        self.blogs = blogs
        self.reviews = reviews
        self.evaluator = evaluator

    def transition(self, item, action, actor: IdentityContext, payload: dict | None = None) -> TransitionResult:
        action = parse_action(action)
        if isinstance(item, Blog):
            key, apply = ("blog", str(item.id)), partial(self._transition_blog, item, action, actor, payload or {})
        elif isinstance(item, Review):
            key, apply = ("company", str(item.company_id)), partial(self._transition_review, item, action, actor)
        else:
            raise InvalidTransition(f"{type(item).__name__} has no moderation lifecycle")

        with locks.hold(*key), unit_of_work():
            result = apply()

        logger.info(
            "moderation_transition",
            kind=result.kind,
            item_id=result.item_id,
            action=action.value,
            actor_id=actor.principal_id,
            role=actor.role.value,
            changed=result.changed,
            removed=result.removed,
        )
        return result

    # -------------------------------------------------------------------
    # Blogs
    # -------------------------------------------------------------------
    def _authorize_staff(self, actor: IdentityContext, capability: Capability):
        self.evaluator.authorize(actor, module_candidates(Module.BLOG), [capability], BLOG_BYPASS_ROLES)

    def _authorize_blog(self, blog: Blog, action: ModerationAction, actor: IdentityContext):
        if action == ModerationAction.PERMANENT_DELETE:
            if not actor.is_admin:
                raise PermissionDenied("Only Admin can permanently delete a blog", blog_id=str(blog.id))
        elif action == ModerationAction.SOFT_DELETE:
            if not actor.owns(blog.author_id):
                self._authorize_staff(actor, Capability.DELETE)
        elif action in STAFF_BLOG_ACTIONS:
            self._authorize_staff(actor, Capability.UPDATE)
        # FLAG is open to every active principal

    def _check_blog_state(self, blog: Blog, action: ModerationAction):
        if blog.is_deleted and action not in DELETED_BLOG_ACTIONS:
            raise InvalidTransition("Blog has been deleted", blog_id=str(blog.id))

        if action == ModerationAction.RESTORE and not blog.is_deleted:
            raise InvalidTransition("Blog is not deleted", blog_id=str(blog.id))
        if action == ModerationAction.FLAG and blog.is_flagged:
            raise InvalidTransition("Blog is already flagged", blog_id=str(blog.id))
        if action == ModerationAction.UNFLAG and not blog.is_flagged:
            raise InvalidTransition("Blog is not flagged", blog_id=str(blog.id))
        if action == ModerationAction.FEATURE and blog.is_featured:
            raise InvalidTransition("Blog is already featured", blog_id=str(blog.id))
        if action == ModerationAction.UNFEATURE and not blog.is_featured:
            raise InvalidTransition("Blog is not featured", blog_id=str(blog.id))

        target = _STATUS_TARGETS.get(action)
        if target is None:
            return
        if action == ModerationAction.PUBLISH and blog.status == BlogStatus.PUBLISHED.value:
            return  # republishing is a no-op
        source = _STATUS_SOURCES.get(action)
        if source is not None and blog.status != source.value:
            raise InvalidTransition(f"Cannot {action.value} a {blog.status} blog", blog_id=str(blog.id))
        if not blog.can_transition_to(target):
            raise InvalidTransition(f"Cannot {action.value} a {blog.status} blog", blog_id=str(blog.id))

    def _transition_blog(self, blog: Blog, action: ModerationAction, actor: IdentityContext, payload: dict):
        if action not in BLOG_ACTIONS:
            raise InvalidTransition(f"'{action.value}' does not apply to blogs", blog_id=str(blog.id))

        self._authorize_blog(blog, action, actor)
        self._check_blog_state(blog, action)

        expected = blog.revision
        blog_id = str(blog.id)

        if action == ModerationAction.PERMANENT_DELETE:
            blog.mark_permanently_deleted(deleted_by=actor.principal_id)
            viewers = list(blog.viewed_by)
            delete_if_unchanged(self.blogs, blog, expected)
            view_dao = current_domain.repository_for(BlogView)._dao
            for view in viewers:
                view_dao.delete(view)
            return TransitionResult(item_id=blog_id, kind="blog", action=action, removed=True)

        if action == ModerationAction.PUBLISH and blog.status == BlogStatus.PUBLISHED.value:
            return TransitionResult(item_id=blog_id, kind="blog", action=action, changed=False, state=_blog_state(blog))

        if action == ModerationAction.FLAG:
            blog.flag_as(
                parse_flag_reason(payload.get("reason")),
                flagged_by=actor.principal_id,
                additional_details=payload.get("details"),
            )
        else:
            apply = {
                ModerationAction.PUBLISH: blog.publish,
                ModerationAction.UNPUBLISH: blog.unpublish,
                ModerationAction.ARCHIVE: blog.archive,
                ModerationAction.UNARCHIVE: blog.unarchive,
                ModerationAction.FEATURE: blog.feature,
                ModerationAction.UNFEATURE: blog.unfeature,
                ModerationAction.SOFT_DELETE: blog.soft_delete,
                ModerationAction.RESTORE: blog.restore,
                ModerationAction.UNFLAG: blog.unflag,
            }[action]
            apply(actor.principal_id)

        save_if_unchanged(self.blogs, blog, expected)
        return TransitionResult(item_id=blog_id, kind="blog", action=action, state=_blog_state(blog))

    # -------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------
    def _transition_review(self, review: Review, action: ModerationAction, actor: IdentityContext):
        if action not in REVIEW_ACTIONS:
            raise InvalidTransition(f"'{action.value}' does not apply to reviews", review_id=str(review.id))

        review_id = str(review.id)
        expected = review.revision

        if action == ModerationAction.DELETE:
            if not (actor.is_admin or actor.owns(review.user_id)):
                raise PermissionDenied("Only the author or an Admin can delete this review", review_id=review_id)
            review.mark_deleted(deleted_by=actor.principal_id)
            delete_if_unchanged(self.reviews, review, expected)
            return TransitionResult(item_id=review_id, kind="review", action=action, removed=True)

        if not actor.is_admin:
            raise PermissionDenied(f"Only Admin can {action.value} reviews", review_id=review_id)

        flag_name, wanted, apply = {
            ModerationAction.HIDE: ("is_hidden", True, review.hide),
            ModerationAction.UNHIDE: ("is_hidden", False, review.unhide),
            ModerationAction.PIN: ("is_pinned", True, review.pin),
            ModerationAction.UNPIN: ("is_pinned", False, review.unpin),
        }[action]
        if bool(getattr(review, flag_name)) == wanted:
            raise InvalidTransition(f"Review is already {'' if wanted else 'not '}{flag_name[3:]}", review_id=review_id)

        apply(actor.principal_id)
        save_if_unchanged(self.reviews, review, expected)
        return TransitionResult(item_id=review_id, kind="review", action=action, state=_review_state(review))


def moderation_machine() -> ModerationStateMachine:
    """State machine wired to the active domain's repositories."""
    return ModerationStateMachine(
        blogs=current_domain.repository_for(Blog),
        reviews=current_domain.repository_for(Review),
        evaluator=permission_evaluator(),
    )
