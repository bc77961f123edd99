"""Connectivity status monitor."""

import logging
from typing import Any, Optional

from canarydash.core.models import Connectivity, DashboardState

logger = logging.getLogger(__name__)


class StatusMonitor:
    """
    Tracks Online/Offline connectivity from fetch outcomes.

    Metrics and matches outcomes both write here without coordinating, so
    the last writer wins. The badge is pushed to the view on every outcome,
    not only on transitions.
    """

    def __init__(self, state: DashboardState, view: Optional[Any] = None):
        """
        Args:
            state: Dashboard state holding the connectivity field
            view: Optional view adapter exposing ``set_status``
        """
        self.state = state
        self.view = view
        self._transitions = 0

    @property
    def connectivity(self) -> Connectivity:
        return self.state.connectivity

    @property
    def is_online(self) -> bool:
        return self.state.connectivity is Connectivity.ONLINE

    def mark(self, online: bool) -> Connectivity:
        """
        Record a fetch outcome.

        Args:
            online: True for a successful fetch, False for a failed one

        Returns:
            The new connectivity state
        """
        new_state = Connectivity.ONLINE if online else Connectivity.OFFLINE
        previous = self.state.connectivity

        if new_state is not previous:
            self._transitions += 1
            if online:
                logger.info("Backend reachable - status Online")
            else:
                logger.warning("Backend unreachable - status Offline")

        self.state.connectivity = new_state
        if self.view is not None:
            self.view.set_status(new_state)
        return new_state

    def get_stats(self) -> dict:
        return {
            'connectivity': self.state.connectivity.value,
            'transitions': self._transitions,
        }
