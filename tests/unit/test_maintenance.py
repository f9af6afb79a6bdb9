"""Tests for the automatic post-command maintenance."""

from unittest.mock import patch

import pytest

from dotkeep.config import Config
from dotkeep.errors import DotkeepError
from dotkeep.maintenance import run_auto_maintenance


@pytest.fixture
def steps():
    with patch("dotkeep.maintenance.update_alternates") as alt, patch(
        "dotkeep.maintenance.update_permissions"
    ) as perms:
        yield alt, perms


def _settings(**values):
    settings = {f"dotkeep.{k.replace('_', '-')}": v for k, v in values.items()}
    return patch.object(Config, "get_bool", side_effect=settings.get)


class TestRunAutoMaintenance:
    """Tests for run_auto_maintenance."""

    def test_nothing_runs_without_changes(self, context, steps):
        """An unset change flag skips both steps whatever the settings."""
        alt, perms = steps

        with _settings(auto_alt=True, auto_perms=True):
            ran = run_auto_maintenance(context)

        assert ran == {"alt": False, "perms": False}
        alt.assert_not_called()
        perms.assert_not_called()

    def test_both_run_by_default(self, context, steps):
        """Absent settings mean enabled."""
        alt, perms = steps
        context.changes_possible = True

        ran = run_auto_maintenance(context)

        assert ran == {"alt": True, "perms": True}
        alt.assert_called_once_with(context)
        perms.assert_called_once_with(context)

    @pytest.mark.parametrize(
        "settings, expected",
        [
            ({"auto_alt": False}, {"alt": False, "perms": True}),
            ({"auto_perms": False}, {"alt": True, "perms": False}),
            (
                {"auto_alt": False, "auto_perms": False},
                {"alt": False, "perms": False},
            ),
            ({"auto_alt": True, "auto_perms": True}, {"alt": True, "perms": True}),
        ],
    )
    def test_steps_are_independent(self, context, steps, settings, expected):
        """Each setting only disables its own step, and only when false."""
        context.changes_possible = True

        with _settings(**settings):
            ran = run_auto_maintenance(context)

        assert ran == expected

    def test_flag_is_consumed(self, context, steps):
        """A second call after a run does nothing."""
        alt, _ = steps
        context.changes_possible = True

        run_auto_maintenance(context)
        run_auto_maintenance(context)

        assert alt.call_count == 1

    def test_failures_are_not_raised(self, context, steps):
        """A failing step is logged and the other still runs."""
        alt, perms = steps
        alt.side_effect = DotkeepError("no work tree")
        context.changes_possible = True

        run_auto_maintenance(context)

        perms.assert_called_once()

    def test_unreadable_settings_are_not_raised(self, context, steps):
        """A failing settings lookup only skips that step."""
        alt, perms = steps
        context.changes_possible = True

        with patch.object(
            Config,
            "get_bool",
            side_effect=[DotkeepError("git cannot be located"), None],
        ):
            ran = run_auto_maintenance(context)

        assert ran == {"alt": False, "perms": True}
        alt.assert_not_called()
        perms.assert_called_once_with(context)
