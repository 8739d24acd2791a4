"""Domain events for the Blog aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from reviewhub.domain import reviewhub


@reviewhub.event(part_of="Blog")
class BlogCreated:
    __version__ = 1

    blog_id = Identifier(required=True)
    author_id = Identifier(required=True)
    title = String(required=True)
    slug = String(required=True)
    status = String(required=True)
    created_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogRevised:
    __version__ = 1

    blog_id = Identifier(required=True)
    title = String()
    slug = String()
    excerpt = Text()
    revised_by = Identifier()
    revised_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogPublished:
    __version__ = 1

    blog_id = Identifier(required=True)
    author_id = Identifier(required=True)
    published_by = Identifier()
    published_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogUnpublished:
    __version__ = 1

    blog_id = Identifier(required=True)
    unpublished_by = Identifier()
    unpublished_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogArchived:
    __version__ = 1

    blog_id = Identifier(required=True)
    archived_by = Identifier()
    archived_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogUnarchived:
    __version__ = 1

    blog_id = Identifier(required=True)
    unarchived_by = Identifier()
    unarchived_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogFeatured:
    __version__ = 1

    blog_id = Identifier(required=True)
    featured_by = Identifier()
    featured_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogUnfeatured:
    __version__ = 1

    blog_id = Identifier(required=True)
    unfeatured_by = Identifier()
    unfeatured_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogSoftDeleted:
    """The blog is hidden from everyone but Admins; content is kept."""

    __version__ = 1

    blog_id = Identifier(required=True)
    deleted_by = Identifier()
    deleted_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogRestored:
    __version__ = 1

    blog_id = Identifier(required=True)
    restored_by = Identifier()
    restored_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogPermanentlyDeleted:
    __version__ = 1

    blog_id = Identifier(required=True)
    deleted_by = Identifier()
    deleted_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogFlagged:
    __version__ = 1

    blog_id = Identifier(required=True)
    reason = String(required=True)
    additional_details = Text()
    flagged_by = Identifier(required=True)
    flagged_at = DateTime(required=True)


@reviewhub.event(part_of="Blog")
class BlogUnflagged:
    __version__ = 1

    blog_id = Identifier(required=True)
    unflagged_by = Identifier()
    unflagged_at = DateTime(required=True)
