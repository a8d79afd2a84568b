"""Contact timing engine.

Derives a contact's display status from its stored cadence and resolves
ping messages from templates. Nothing here touches the store: status is
computed at read time and the "recently contacted" flag lives with the
client, so marking a contact only ever persists ``last_contacted_days = 0``.
"""

from enum import Enum
from typing import Iterable, MutableSet, Optional, Sequence

NAME_PLACEHOLDER = "{name}"
REACHING_WINDOW_DAYS = 2


class TimingStatus(str, Enum):
    """Display state of a contact relative to its target cadence."""

    OK = "OK"
    REACHING = "REACHING"
    OVERDUE = "OVERDUE"
    CONTACTED = "CONTACTED"


class StatusFilter(str, Enum):
    """Dashboard status filter; ``DUE`` selects overdue contacts."""

    ALL = "ALL"
    DUE = "DUE"
    REACHING = "REACHING"
    CONTACTED = "CONTACTED"


def timing_status(
    last_contacted_days: int, frequency_days: int, recently_marked: bool = False
) -> TimingStatus:
    """
    Derive the timing status for a contact.

    ``last_contacted_days == frequency_days`` is REACHING, not OVERDUE:
    only a strictly greater count is overdue.

    Args:
        last_contacted_days (int): Days since the contact was last reached.
        frequency_days (int): Target contact cadence in days.
        recently_marked (bool): Whether the client marked the contact
            during the current session.

    Returns:
        TimingStatus: Derived status.
    """
    if recently_marked or last_contacted_days == 0:
        return TimingStatus.CONTACTED
    if last_contacted_days > frequency_days:
        return TimingStatus.OVERDUE
    threshold = max(frequency_days - REACHING_WINDOW_DAYS, 0)
    if threshold <= last_contacted_days <= frequency_days:
        return TimingStatus.REACHING
    return TimingStatus.OK


def contact_status(contact, recently_marked: bool = False) -> TimingStatus:
    """Derive the status of any object with the two cadence attributes."""
    return timing_status(
        contact.last_contacted_days, contact.frequency_days, recently_marked
    )


def matches_status_filter(status: TimingStatus, status_filter: StatusFilter) -> bool:
    if status_filter is StatusFilter.ALL:
        return True
    if status_filter is StatusFilter.DUE:
        return status is TimingStatus.OVERDUE
    return status.value == status_filter.value


def toggle_recently_contacted(recent: MutableSet[str], contact_id: str) -> bool:
    """
    Flip the transient "recently contacted" flag for a contact.

    The caller persists ``last_contacted_days = 0`` in both directions;
    toggling off does not bring back the previous day count.

    Returns:
        bool: ``True`` if the contact is now marked.
    """
    if contact_id in recent:
        recent.discard(contact_id)
        return False
    recent.add(contact_id)
    return True


def resolve_ping_template(
    contact_template: Optional[str],
    templates: Sequence[str],
    selected_index: Optional[int] = None,
) -> Optional[str]:
    """
    Pick the template used to ping a contact.

    Order: the contact's own template, then the selected global template,
    then the first configured template.

    Returns:
        str | None: The template, or ``None`` when nothing is configured.
    """
    if contact_template:
        return contact_template
    if selected_index is not None and 0 <= selected_index < len(templates):
        if templates[selected_index]:
            return templates[selected_index]
    if templates:
        return templates[0]
    return None


def render_ping(template: str, name: str) -> str:
    """Substitute the first ``{name}`` placeholder with ``name`` verbatim.

    Later placeholders are left as they are.
    """
    return template.replace(NAME_PLACEHOLDER, name, 1)


def recent_ids(values: Iterable[str] | None) -> set[str]:
    """Normalize the ``recent`` query values (repeated or comma separated)."""
    result: set[str] = set()
    for value in values or ():
        result.update(part.strip() for part in value.split(",") if part.strip())
    return result
