"""CreateBlog and UpdateBlog: writing content.

Any active principal can write a blog and may publish it straight away.
Afterwards only the author or staff may edit it, and status changes go
through ModerateBlog.
"""

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.evaluator import permission_evaluator
from reviewhub.access.identity import resolve_identity
from reviewhub.access.modules import Capability, Module, module_candidates
from reviewhub.blog.blog import Blog, BlogStatus
from reviewhub.domain import reviewhub
from reviewhub.errors import InvalidTransition
from reviewhub.moderation.state_machine import BLOG_BYPASS_ROLES
from reviewhub.utils.concurrency import save_if_unchanged, serialized


@reviewhub.command(part_of="Blog")
class CreateBlog:
    actor_id = Identifier(required=True)
    title = String(required=True, max_length=200)
    content = Text(required=True)
    excerpt = Text()
    slug = String(max_length=220)
    status = String(default=BlogStatus.DRAFT.value)


@reviewhub.command(part_of="Blog")
class UpdateBlog:
    actor_id = Identifier(required=True)
    blog_id = Identifier(required=True)
    title = String(max_length=200)
    content = Text()
    excerpt = Text()
    slug = String(max_length=220)


def _blog_key(command):
    return ("blog", str(command.blog_id))


@reviewhub.command_handler(part_of=Blog)
class BlogAuthoringHandler:
    @handle(CreateBlog)
    def create_blog(self, command):
        actor = resolve_identity(command.actor_id)
        blog = Blog.create(
            title=command.title,
            content=command.content,
            author_id=actor.principal_id,
            excerpt=command.excerpt,
            slug=command.slug,
            status=command.status or BlogStatus.DRAFT.value,
        )
        current_domain.repository_for(Blog).add(blog)
        return str(blog.id)

    @serialized(_blog_key)
    @handle(UpdateBlog)
    def update_blog(self, command):
        actor = resolve_identity(command.actor_id)
        repo = current_domain.repository_for(Blog)
        blog = repo.get(command.blog_id)

        if not actor.owns(blog.author_id):
            permission_evaluator().authorize(
                actor, module_candidates(Module.BLOG), [Capability.UPDATE], BLOG_BYPASS_ROLES
            )
        if blog.is_deleted:
            raise InvalidTransition("Deleted blogs cannot be edited", blog_id=str(blog.id))

        changes = {
            field: getattr(command, field)
            for field in ("title", "content", "excerpt", "slug")
            if getattr(command, field) is not None
        }
        expected = blog.revision
        blog.revise(revised_by=actor.principal_id, **changes)
        save_if_unchanged(repo, blog, expected)
