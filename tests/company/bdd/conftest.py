"""Shared BDD fixtures and step definitions for company ratings."""

import re

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when
from reviewhub.company.company import Company


def _ratings(text):
    """'4, 5 and 3' -> [4, 5, 3]"""
    return [int(value) for value in re.findall(r"\d+", text)]


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an approved company "{name}"'), target_fixture="company_id")
def approved_company(make_company, name):
    return make_company(name)


@given(parsers.cfparse("reviewers rated the company {ratings}"), target_fixture="reviews")
@when(parsers.cfparse("reviewers rate the company {ratings}"), target_fixture="reviews")
def existing_reviews(company_id, make_principal, submit_review, ratings):
    reviews = []
    for rating in _ratings(ratings):
        reviewer = make_principal()
        reviews.append((reviewer, submit_review(company_id, reviewer, rating), rating))
    return reviews


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the company rating is {average:f} from {count:d} reviews"))
def company_rating_is(company_id, average, count):
    company = current_domain.repository_for(Company).get(company_id)
    assert company.ratings_aggregate == average
    assert company.total_reviews == count
