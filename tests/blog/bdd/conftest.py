"""Shared BDD fixtures and step definitions for blog moderation."""

from protean import current_domain
from pytest_bdd import given, parsers, then, when
from reviewhub.access.principal import Role
from reviewhub.blog.blog import Blog
from reviewhub.blog.moderation import ModerateBlog
from reviewhub.errors import InvalidTransition, PermissionDenied


def _blog(scene):
    return current_domain.repository_for(Blog).get(scene["blog_id"])


def _apply(scene, actor, action, **extra):
    scene["error"] = None
    try:
        current_domain.process(
            ModerateBlog(actor_id=actor.principal_id, blog_id=scene["blog_id"], action=action, **extra),
            asynchronous=False,
        )
    except (PermissionDenied, InvalidTransition) as exc:
        scene["error"] = exc
        return
    scene.setdefault("first_published_at", _blog(scene).published_at)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a user "{name}" with a draft blog'), target_fixture="scene")
def user_with_draft(clock, make_principal, make_blog, name):
    author = make_principal(email=f"{name}@example.com")
    return {
        "clock": clock,
        "author": author,
        "admin": make_principal(Role.ADMIN),
        "blog_id": make_blog(author, title=f"Notes from {name}"),
        "error": None,
    }


@given(parsers.cfparse('the admin applied "{action}"'))
@when(parsers.cfparse('the admin applies "{action}"'))
def admin_applies(scene, action):
    _apply(scene, scene["admin"], action)


@given(parsers.cfparse('the author applied "{action}"'))
@when(parsers.cfparse('the author applies "{action}"'))
def author_applies(scene, action):
    _apply(scene, scene["author"], action)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the blog status is "{status}"'))
def blog_status_is(scene, status):
    assert _blog(scene).status == status


@then("the action is denied")
def action_denied(scene):
    assert isinstance(scene["error"], PermissionDenied)


@then("the transition is rejected")
def transition_rejected(scene):
    assert isinstance(scene["error"], InvalidTransition)


@then("the blog is not deleted")
def blog_not_deleted(scene):
    assert scene["error"] is None
    assert _blog(scene).is_deleted is False


@then("the blog is not flagged")
def blog_not_flagged(scene):
    blog = _blog(scene)
    assert blog.is_flagged is False
    assert blog.flag is None


@when(parsers.cfparse('a reader flags the blog for "{reason}"'))
def reader_flags(scene, make_principal, reason):
    _apply(scene, make_principal(), "flag", flag_reason=reason)
