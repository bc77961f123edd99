import pytest

from canarydash.api.response_parser import (
    ResponseError,
    parse_match,
    parse_matches,
    parse_metrics,
    parse_performance,
    validate_response,
)


@pytest.mark.unit
def test_validate_response_decodes_object():
    assert validate_response(b'{"a": 1}') == {"a": 1}


@pytest.mark.unit
@pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'"text"'])
def test_validate_response_rejects_bad_bodies(body):
    with pytest.raises(ResponseError):
        validate_response(body)


@pytest.mark.unit
def test_parse_metrics(metrics_payload):
    metrics = parse_metrics(metrics_payload)
    assert metrics.total_certs == 9876543
    assert metrics.recent_matches == 3


@pytest.mark.unit
@pytest.mark.parametrize("bad", [None, "12", True, -1])
def test_parse_metrics_rejects_bad_counters(metrics_payload, bad):
    metrics_payload["rules_count"] = bad
    with pytest.raises(ResponseError):
        parse_metrics(metrics_payload)


@pytest.mark.unit
def test_parse_performance(performance_payload):
    current = parse_performance(performance_payload)
    assert current.certs_per_minute == 1500.5
    assert current.avg_match_time_us == 42


@pytest.mark.unit
def test_parse_performance_missing_window():
    assert parse_performance({}) is None
    assert parse_performance({"current": None}) is None


@pytest.mark.unit
def test_parse_performance_rejects_non_object():
    with pytest.raises(ResponseError):
        parse_performance({"current": [1, 2]})


@pytest.mark.unit
def test_parse_match_accepts_list_or_string_domains(match_payload):
    as_list = parse_match(match_payload(matched_domains=["a.test", "b.test"]))
    as_str = parse_match(match_payload(matched_domains="a.test"))
    missing = parse_match(match_payload(matched_domains=None))

    assert as_list.matched_domains == ("a.test", "b.test")
    assert as_str.matched_domains == "a.test"
    assert missing.matched_domains == ""


@pytest.mark.unit
def test_parse_match_null_dns_names(match_payload):
    match = parse_match(match_payload(dns_names=None))
    assert match.dns_names == ()


@pytest.mark.unit
@pytest.mark.parametrize("overrides", [
    {"dns_names": "www.example.com"},
    {"dns_names": [1, 2]},
    {"matched_domains": 42},
])
def test_parse_match_rejects_bad_field_types(match_payload, overrides):
    with pytest.raises(ResponseError):
        parse_match(match_payload(**overrides))


@pytest.mark.unit
def test_parse_matches(match_payload):
    assert parse_matches({}) == []
    assert len(parse_matches({"matches": [match_payload(), match_payload()]})) == 2
    with pytest.raises(ResponseError):
        parse_matches({"matches": {"oops": 1}})
    with pytest.raises(ResponseError):
        parse_matches({"matches": ["not a record"]})
