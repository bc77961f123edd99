"""
Shared pytest fixtures and utilities for the canarydash test suite.
"""

import copy
from pathlib import Path
from typing import Any, Callable, Dict, Iterable

import pytest
import yaml

from canarydash.config.loader import DEFAULT_CONFIG, merge_config
from canarydash.core.models import Match


def make_match(
    detected_at: str = "2024-05-01T12:00:00Z",
    dns_names: Iterable[str] = ("www.example.com",),
    matched_rule: str = "example-rule",
    priority: str = "high",
    matched_domains="example.com",
    tbs_sha256: str = "ab" * 32,
) -> Match:
    """Build a Match with sensible defaults for tests."""
    return Match(
        detected_at=detected_at,
        dns_names=tuple(dns_names),
        matched_rule=matched_rule,
        priority=priority,
        matched_domains=matched_domains,
        tbs_sha256=tbs_sha256,
    )


def match_payload(**overrides) -> Dict[str, Any]:
    """Raw /api/matches/recent record as the backend sends it."""
    record = {
        "detected_at": "2024-05-01T12:00:00Z",
        "dns_names": ["www.example.com"],
        "matched_rule": "example-rule",
        "priority": "high",
        "matched_domains": ["example.com"],
        "tbs_sha256": "ab" * 32,
    }
    record.update(overrides)
    return record


METRICS_PAYLOAD = {
    "total_matches": 1234,
    "total_certs": 9876543,
    "rules_count": 12,
    "uptime_seconds": 90000,
    "recent_matches": 3,
}

PERFORMANCE_PAYLOAD = {
    "current": {
        "certs_per_minute": 1500.5,
        "matches_per_minute": 2.25,
        "avg_match_time_us": 42,
        "cpu_percent": 12.345,
        "memory_used_mb": 256.04,
        "goroutine_count": 17,
    }
}


@pytest.fixture
def base_config() -> Dict[str, Any]:
    """Full default configuration pointed at a fake backend."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["api"]["base_url"] = "http://backend.test"
    config["logging"]["console"] = False
    return config


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[[Dict[str, Any]], Path]:
    """
    Create a config.yaml in a temp directory.

    Usage:
        path = make_config({"polling": {"interval_seconds": 10}})
    """

    def _builder(overrides: Dict[str, Any] | None = None) -> Path:
        base = {
            "api": {"base_url": "http://backend.test"},
            "theme": {"state_file": str(tmp_path / "state.json")},
        }
        if overrides:
            base = merge_config(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder


@pytest.fixture(name="make_match")
def make_match_fixture() -> Callable[..., Match]:
    """Factory for Match records: ``make_match(priority="low")``."""
    return make_match


@pytest.fixture(name="match_payload")
def match_payload_fixture() -> Callable[..., Dict[str, Any]]:
    """Factory for raw match records: ``match_payload(priority=None)``."""
    return match_payload


@pytest.fixture
def metrics_payload() -> Dict[str, Any]:
    return copy.deepcopy(METRICS_PAYLOAD)


@pytest.fixture
def performance_payload() -> Dict[str, Any]:
    return copy.deepcopy(PERFORMANCE_PAYLOAD)
