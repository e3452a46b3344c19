"""Tests for request eligibility."""

import pytest
from conftest import make_context

from page_cache.config import ConfigError
from page_cache.services import Gatekeeper, RequestNormalizer

XHR = {"x-requested-with": "XMLHttpRequest"}


def make_gatekeeper(**kwargs) -> Gatekeeper:
    kwargs.setdefault("clear_cache_param", "purge")
    return Gatekeeper(RequestNormalizer(ignore_params=["purge"]), **kwargs)


@pytest.mark.parametrize("method", ["GET", "HEAD"])
def test_get_and_head_are_eligible(method):
    assert make_gatekeeper().is_eligible(make_context(method=method))


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
def test_other_methods_are_not_eligible(method):
    assert not make_gatekeeper(xhr=True).is_eligible(make_context(method=method))


def test_exclusion_pattern_matches_normalized_uri():
    gatekeeper = make_gatekeeper(exclude=[r"/admin", r"[?&]nocache="])
    assert not gatekeeper.is_eligible(make_context(path="/admin/users"))
    assert not gatekeeper.is_eligible(make_context(query_string="nocache=1"))
    assert gatekeeper.is_eligible(make_context(path="/public"))


def test_exclusion_sees_canonical_query_order():
    gatekeeper = make_gatekeeper(exclude=[r"\?a=1&b=2$"])
    assert not gatekeeper.is_eligible(make_context(query_string="b=2&a=1"))


def test_xhr_is_excluded_by_default():
    gatekeeper = make_gatekeeper()
    assert not gatekeeper.is_eligible(make_context(headers=XHR))


def test_xhr_header_is_case_insensitive():
    gatekeeper = make_gatekeeper()
    assert not gatekeeper.is_eligible(make_context(headers={"x-requested-with": "xmlhttprequest"}))


def test_xhr_allowed_when_enabled():
    assert make_gatekeeper(xhr=True).is_eligible(make_context(headers=XHR))


def test_other_requested_with_values_are_not_xhr():
    gatekeeper = make_gatekeeper()
    assert gatekeeper.is_eligible(make_context(headers={"x-requested-with": "com.example.app"}))


def test_wants_purge_with_and_without_value():
    gatekeeper = make_gatekeeper()
    assert gatekeeper.wants_purge(make_context(query_string="x=1&purge=1"))
    assert gatekeeper.wants_purge(make_context(query_string="purge"))
    assert not gatekeeper.wants_purge(make_context(query_string="x=1"))


def test_purge_disabled_without_param_name():
    gatekeeper = make_gatekeeper(clear_cache_param="")
    assert not gatekeeper.wants_purge(make_context(query_string="purge=1"))


def test_invalid_pattern_raises_config_error():
    with pytest.raises(ConfigError):
        make_gatekeeper(exclude=["(unclosed"])
