import itertools
import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def reviewhub_bed():
    from reviewhub.domain import reviewhub

    bed = DomainFixture(reviewhub)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(reviewhub_bed):
    with reviewhub_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain
    from reviewhub.clock import reset_clock

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_clock()


# ---------------------------------------------------------------------------
# Shared factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def clock():
    from reviewhub.clock import set_clock
    from reviewhub.clock.fake_clock import FakeClock

    fake = FakeClock()
    set_clock(fake)
    return fake


@pytest.fixture()
def make_principal():
    """Persist a principal and return its IdentityContext.

    `permissions` creates a PermissionTree from the given document; pass `{}`
    for an empty tree and leave it out for no tree at all.
    """
    from protean import current_domain
    from reviewhub.access.identity import IdentityContext
    from reviewhub.access.permission_tree import PermissionTree
    from reviewhub.access.principal import Principal, Role

    counter = itertools.count(1)

    def _make(role=Role.USER, permissions=None, email=None):
        role = Role(role)
        email = email or f"{role.value.lower()}{next(counter)}@example.com"
        if role == Role.USER:
            principal = Principal.register(email=email, full_name="Test User")
        else:
            principal = Principal.provision(email=email, full_name=f"Test {role.value}", role=role)
        current_domain.repository_for(Principal).add(principal)

        if permissions is not None:
            tree = PermissionTree.from_document(str(principal.id), permissions)
            current_domain.repository_for(PermissionTree).add(tree)
        return IdentityContext.of(principal)

    return _make


@pytest.fixture()
def admin(make_principal):
    from reviewhub.access.principal import Role

    return make_principal(Role.ADMIN)


@pytest.fixture()
def operator(make_principal):
    from reviewhub.access.principal import Role

    return make_principal(Role.OPERATOR, permissions={})


@pytest.fixture()
def user(make_principal):
    return make_principal()


@pytest.fixture()
def make_company(admin):
    from protean import current_domain
    from reviewhub.company.management import RegisterCompany

    def _make(name="Acme Corp", actor=None):
        command = RegisterCompany(actor_id=(actor or admin).principal_id, name=name)
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def submit_review():
    from protean import current_domain
    from reviewhub.review.submission import SubmitReview

    def _submit(company_id, actor, rating, title=None, comment=None):
        command = SubmitReview(
            actor_id=actor.principal_id,
            company_id=company_id,
            rating=rating,
            title=title,
            comment=comment,
        )
        return current_domain.process(command, asynchronous=False)

    return _submit


@pytest.fixture()
def make_blog():
    from protean import current_domain
    from reviewhub.blog.authoring import CreateBlog

    def _make(author, title="Hello World", status="draft", content="Some thoughtful content."):
        command = CreateBlog(actor_id=author.principal_id, title=title, content=content, status=status)
        return current_domain.process(command, asynchronous=False)

    return _make


@pytest.fixture()
def client():
    """TestClient over every router, with both sets of exception handlers."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from protean.integrations.fastapi import register_exception_handlers
    from reviewhub.api import (
        blog_router,
        company_router,
        principal_router,
        register_domain_exception_handlers,
        review_router,
    )

    app = FastAPI()
    for router in (principal_router, company_router, review_router, blog_router):
        app.include_router(router)
    register_exception_handlers(app)
    register_domain_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def auth():
    """Request headers identifying `identity` as the caller."""

    def _headers(identity):
        return {"X-Principal-Id": identity.principal_id}

    return _headers
