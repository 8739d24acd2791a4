"""ModerateBlog: every status, feature, deletion and flag change of a blog."""

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import resolve_identity
from reviewhub.blog.blog import Blog
from reviewhub.domain import reviewhub
from reviewhub.moderation.state_machine import moderation_machine
from reviewhub.utils.concurrency import serialized


@reviewhub.command(part_of="Blog")
class ModerateBlog:
    actor_id = Identifier(required=True)
    blog_id = Identifier(required=True)
    action = String(required=True)
    flag_reason = String()  # Required for "flag"
    flag_details = Text()


def _blog_key(command):
    return ("blog", str(command.blog_id))


@reviewhub.command_handler(part_of=Blog)
class ModerateBlogHandler:
    @serialized(_blog_key)
    @handle(ModerateBlog)
    def moderate_blog(self, command):
        actor = resolve_identity(command.actor_id)
        blog = current_domain.repository_for(Blog).get(command.blog_id)
        return moderation_machine().transition(
            blog,
            command.action,
            actor,
            payload={"reason": command.flag_reason, "details": command.flag_details},
        )
