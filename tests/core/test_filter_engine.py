import pytest

from canarydash.core.filter_engine import (
    apply_filters,
    filter_matches,
    matches_priority,
    matches_search,
)
from canarydash.core.models import DashboardState


@pytest.fixture
def mixed_matches(make_match):
    return (
        make_match(dns_names=["api.bank.example"], priority="critical"),
        make_match(dns_names=["login.shop.test"], priority="high"),
        make_match(dns_names=["Mail.Bank.Example", "smtp.bank.example"], priority="high"),
        make_match(dns_names=["cdn.other.test"], priority="low"),
    )


@pytest.mark.unit
def test_priority_filter_keeps_only_matching_priority(mixed_matches):
    filtered = filter_matches(mixed_matches, search_text="", priority_filter="high")
    assert len(filtered) == 2
    assert all(m.priority == "high" for m in filtered)


@pytest.mark.unit
def test_search_is_case_insensitive_substring(mixed_matches):
    filtered = filter_matches(mixed_matches, search_text="BANK")
    assert filtered == (mixed_matches[0], mixed_matches[2])


@pytest.mark.unit
def test_search_and_priority_combine(mixed_matches):
    filtered = filter_matches(mixed_matches, search_text="bank", priority_filter="high")
    assert filtered == (mixed_matches[2],)


@pytest.mark.unit
def test_result_is_order_preserving_subsequence(mixed_matches):
    filtered = filter_matches(mixed_matches, search_text="test")
    indexes = [mixed_matches.index(m) for m in filtered]
    assert indexes == sorted(indexes)


@pytest.mark.unit
def test_empty_filters_return_everything(mixed_matches):
    assert filter_matches(mixed_matches) == mixed_matches


@pytest.mark.unit
def test_empty_search_matches_record_without_dns_names(make_match):
    match = make_match(dns_names=[])
    assert matches_search(match, "")
    assert not matches_search(match, "a")


@pytest.mark.unit
def test_unknown_priority_only_passes_empty_filter(make_match):
    match = make_match(priority="urgent")
    assert matches_priority(match, "")
    assert not matches_priority(match, "critical")


@pytest.mark.unit
def test_filtering_is_idempotent(mixed_matches):
    once = filter_matches(mixed_matches, "bank", "high")
    twice = filter_matches(once, "bank", "high")
    assert once == twice


@pytest.mark.unit
def test_apply_filters_resets_page(mixed_matches):
    state = DashboardState(matches=mixed_matches, current_page=4, priority_filter="low")

    apply_filters(state)

    assert state.filtered_matches == (mixed_matches[3],)
    assert state.current_page == 0
