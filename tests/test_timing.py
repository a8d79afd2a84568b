from types import SimpleNamespace

import pytest

from notifier.timing import (
    StatusFilter,
    TimingStatus,
    contact_status,
    matches_status_filter,
    recent_ids,
    render_ping,
    resolve_ping_template,
    timing_status,
    toggle_recently_contacted,
)


@pytest.mark.parametrize(
    "last, freq, expected",
    [
        (0, 7, TimingStatus.CONTACTED),
        (1, 7, TimingStatus.OK),
        (4, 7, TimingStatus.OK),
        (5, 7, TimingStatus.REACHING),
        (7, 7, TimingStatus.REACHING),
        (8, 7, TimingStatus.OVERDUE),
        (1, 1, TimingStatus.REACHING),
        (2, 1, TimingStatus.OVERDUE),
        (30, 30, TimingStatus.REACHING),
        (27, 30, TimingStatus.OK),
    ],
)
def test_timing_status(last, freq, expected):
    assert timing_status(last, freq) is expected


def test_due_date_is_reaching_not_overdue():
    assert timing_status(7, 7) is TimingStatus.REACHING


def test_recently_marked_wins_over_overdue():
    assert timing_status(40, 7, recently_marked=True) is TimingStatus.CONTACTED


def test_contact_status_reads_cadence_attributes():
    contact = SimpleNamespace(last_contacted_days=9, frequency_days=7)
    assert contact_status(contact) is TimingStatus.OVERDUE
    assert contact_status(contact, recently_marked=True) is TimingStatus.CONTACTED


def test_toggle_recently_contacted():
    recent: set[str] = set()

    assert toggle_recently_contacted(recent, "c1") is True
    assert "c1" in recent
    assert toggle_recently_contacted(recent, "c1") is False
    assert "c1" not in recent


def test_status_filters():
    assert matches_status_filter(TimingStatus.OK, StatusFilter.ALL)
    assert matches_status_filter(TimingStatus.OVERDUE, StatusFilter.DUE)
    assert not matches_status_filter(TimingStatus.REACHING, StatusFilter.DUE)
    assert matches_status_filter(TimingStatus.REACHING, StatusFilter.REACHING)
    assert matches_status_filter(TimingStatus.CONTACTED, StatusFilter.CONTACTED)
    assert not matches_status_filter(TimingStatus.OK, StatusFilter.CONTACTED)


def test_template_resolution_order():
    templates = ["first {name}", "second {name}"]

    assert resolve_ping_template("own {name}", templates, 1) == "own {name}"
    assert resolve_ping_template(None, templates, 1) == "second {name}"
    assert resolve_ping_template("", templates, None) == "first {name}"
    assert resolve_ping_template(None, templates, 9) == "first {name}"
    assert resolve_ping_template(None, [], 0) is None


def test_render_ping_substitutes_first_name_verbatim():
    assert render_ping("Hi {name}!", "Bob") == "Hi Bob!"
    assert render_ping("{name}, {name}", "Ann") == "Ann, {name}"
    assert render_ping("Hey {name}", "{name}") == "Hey {name}"
    assert render_ping("No placeholder", "Bob") == "No placeholder"


def test_recent_ids_accepts_repeated_and_comma_separated():
    assert recent_ids(["a,b", " c ", ""]) == {"a", "b", "c"}
    assert recent_ids(None) == set()
