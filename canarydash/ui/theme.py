"""Persisted light/dark theme preference."""

import json
import logging
from pathlib import Path
from typing import Union

from canarydash.core.models import Theme

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = "~/.config/canarydash/state.json"
THEME_KEY = "theme"

# The toggle shows what clicking it switches to
THEME_ICONS = {
    Theme.LIGHT: "☾",
    Theme.DARK: "☀",
}


def toggle_theme(theme: Theme) -> Theme:
    return Theme.DARK if theme is Theme.LIGHT else Theme.LIGHT


def theme_icon(theme: Theme) -> str:
    return THEME_ICONS[theme]


class ThemeStore:
    """
    Reads and writes the single persisted theme preference.

    The preference lives under the ``theme`` key of a small JSON state file
    and persists across sessions until overwritten. Other keys in the file
    are preserved on write.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_STATE_FILE):
        self.path = Path(path).expanduser()

    def _read_state(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read theme state {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Theme:
        """
        Load the persisted theme.

        Returns:
            Stored theme, or Theme.LIGHT when absent or invalid
        """
        value = self._read_state().get(THEME_KEY)
        try:
            return Theme(value)
        except ValueError:
            if value is not None:
                logger.warning(f"Ignoring unknown theme value: {value!r}")
            return Theme.LIGHT

    def save(self, theme: Theme) -> None:
        """
        Persist the theme.

        Written to a temp file then renamed, so a crash never leaves a
        truncated state file.
        """
        state = self._read_state()
        state[THEME_KEY] = theme.value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.path.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(state, f, indent=2)
            temp_file.replace(self.path)
        except OSError as e:
            logger.error(f"Could not save theme preference to {self.path}: {e}")
            return

        logger.debug(f"Theme preference saved: {theme.value}")


class ThemeSwitcher:
    """Applies and toggles the theme; independent of polling."""

    def __init__(self, store: ThemeStore, view, state=None):
        """
        Args:
            store: Persistence for the preference
            view: View adapter exposing ``set_theme``
            state: Optional DashboardState mirroring the current theme
        """
        self.store = store
        self.view = view
        self.state = state
        self.theme = Theme.LIGHT

    def _apply(self) -> None:
        if self.state is not None:
            self.state.theme = self.theme
        self.view.set_theme(self.theme, theme_icon(self.theme))

    def initialize(self) -> Theme:
        """Load the persisted preference and apply it."""
        self.theme = self.store.load()
        self._apply()
        return self.theme

    def toggle(self) -> Theme:
        """Flip light/dark, persist the new value and apply it."""
        self.theme = toggle_theme(self.theme)
        self.store.save(self.theme)
        self._apply()
        logger.info(f"Theme switched to {self.theme.value}")
        return self.theme
