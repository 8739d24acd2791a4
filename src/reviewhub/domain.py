"""reviewhub bounded context: companies, reviews, blogs and the rules that guard them.

Hosts the four pieces that keep shared state correct under role-diverse,
concurrent writers: the permission evaluator, the company rating engine,
the blog view tracker and the content moderation state machine.
"""

from protean.domain import Domain

from reviewhub.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

reviewhub = Domain(name="reviewhub")
