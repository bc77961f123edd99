import json
from unittest.mock import Mock

import pytest

from canarydash.core.models import DashboardState, Theme
from canarydash.ui.theme import ThemeStore, ThemeSwitcher, theme_icon, toggle_theme


@pytest.mark.unit
def test_toggle_and_icons():
    assert toggle_theme(Theme.LIGHT) is Theme.DARK
    assert toggle_theme(Theme.DARK) is Theme.LIGHT
    assert theme_icon(Theme.LIGHT) == "☾"
    assert theme_icon(Theme.DARK) == "☀"


@pytest.mark.unit
def test_store_defaults_to_light_when_missing(tmp_path):
    store = ThemeStore(tmp_path / "state.json")
    assert store.load() is Theme.LIGHT


@pytest.mark.unit
@pytest.mark.parametrize("content", ["{not json", '"dark"', '{"theme": "sepia"}'])
def test_store_defaults_to_light_on_bad_content(tmp_path, content):
    path = tmp_path / "state.json"
    path.write_text(content)
    assert ThemeStore(path).load() is Theme.LIGHT


@pytest.mark.unit
def test_store_round_trip_preserves_other_keys(tmp_path):
    path = tmp_path / "nested" / "state.json"
    path.parent.mkdir()
    path.write_text(json.dumps({"other": 1}))
    store = ThemeStore(path)

    store.save(Theme.DARK)

    assert store.load() is Theme.DARK
    assert json.loads(path.read_text()) == {"other": 1, "theme": "dark"}
    assert not path.with_suffix(".tmp").exists()


@pytest.mark.unit
def test_switcher_applies_persisted_theme(tmp_path):
    store = ThemeStore(tmp_path / "state.json")
    store.save(Theme.DARK)
    view = Mock()
    state = DashboardState()

    ThemeSwitcher(store, view, state).initialize()

    view.set_theme.assert_called_once_with(Theme.DARK, "☀")
    assert state.theme is Theme.DARK


@pytest.mark.unit
def test_switcher_toggle_persists(tmp_path):
    store = ThemeStore(tmp_path / "state.json")
    view = Mock()
    switcher = ThemeSwitcher(store, view)
    switcher.initialize()

    assert switcher.toggle() is Theme.DARK
    assert ThemeStore(tmp_path / "state.json").load() is Theme.DARK
    view.set_theme.assert_called_with(Theme.DARK, "☀")

    assert switcher.toggle() is Theme.LIGHT
    assert store.load() is Theme.LIGHT
