"""Outcome policy table.

Maps each (endpoint, outcome) pair to the ordered state-mutation actions the
controller performs. The three endpoints deliberately handle failure
differently:

- metrics: failure keeps the stale counters and only flips status Offline
- matches: failure flips Offline and clears the store, showing an empty table
- performance: failure is logged and otherwise ignored
"""

from enum import Enum
from typing import Dict, Tuple

from canarydash.core.models import Endpoint


class Outcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class Action(Enum):
    """State mutations a fetch outcome can trigger."""
    SET_ONLINE = "set_online"
    SET_OFFLINE = "set_offline"
    APPLY_METRICS = "apply_metrics"
    APPLY_PERFORMANCE = "apply_performance"
    REPLACE_MATCHES = "replace_matches"    # sort, refilter, render
    CLEAR_MATCHES = "clear_matches"        # empty store, forced-empty render


POLICY_TABLE: Dict[Tuple[Endpoint, Outcome], Tuple[Action, ...]] = {
    (Endpoint.METRICS, Outcome.SUCCESS): (Action.APPLY_METRICS, Action.SET_ONLINE),
    (Endpoint.METRICS, Outcome.FAILURE): (Action.SET_OFFLINE,),
    (Endpoint.MATCHES, Outcome.SUCCESS): (Action.REPLACE_MATCHES, Action.SET_ONLINE),
    (Endpoint.MATCHES, Outcome.FAILURE): (Action.SET_OFFLINE, Action.CLEAR_MATCHES),
    (Endpoint.PERFORMANCE, Outcome.SUCCESS): (Action.APPLY_PERFORMANCE,),
    (Endpoint.PERFORMANCE, Outcome.FAILURE): (),
}


def actions_for(endpoint: Endpoint, ok: bool) -> Tuple[Action, ...]:
    """
    Look up the actions for a fetch outcome.

    Args:
        endpoint: Endpoint that was fetched
        ok: Whether the fetch succeeded

    Returns:
        Actions to perform, in order
    """
    outcome = Outcome.SUCCESS if ok else Outcome.FAILURE
    return POLICY_TABLE[(endpoint, outcome)]
