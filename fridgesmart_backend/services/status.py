"""Urgency classification for inventory items."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum


class ItemStatus(str, Enum):
    """Urgency states shown for an item.

    ``SPOILED`` is part of the vocabulary the client understands but no rule
    below produces it.
    """

    FRESH = "Fresh"
    GOOD = "Good"
    USE_SOON = "Use Soon"
    EXPIRING = "Expiring"
    SPOILED = "Spoiled"


# Checked in order; the first substring found wins.
_FRESHNESS_LABELS: tuple[tuple[str, ItemStatus], ...] = (
    ("critical", ItemStatus.EXPIRING),
    ("use soon", ItemStatus.USE_SOON),
    ("good", ItemStatus.GOOD),
    ("fresh", ItemStatus.FRESH),
)


def status_from_label(freshness_label: str | None) -> ItemStatus | None:
    """Return the status named by a model freshness label, if recognized."""

    normalized = (freshness_label or "").lower()
    if not normalized:
        return None
    for needle, status in _FRESHNESS_LABELS:
        if needle in normalized:
            return status
    return None


def classify_status(
    days_until_expiration: int, freshness_label: str | None = None
) -> ItemStatus:
    """Classify an image-analyzed item.

    A recognized freshness label wins over the day count.
    """

    labeled = status_from_label(freshness_label)
    if labeled is not None:
        return labeled

    days = days_until_expiration
    if days <= 2:
        return ItemStatus.EXPIRING
    if days <= 5:
        return ItemStatus.USE_SOON
    if days <= 14:
        return ItemStatus.GOOD
    return ItemStatus.FRESH


def classify_manual_status(days_until_expiration: int) -> ItemStatus:
    """Classify an item entered or edited by hand. Never returns ``FRESH``."""

    days = days_until_expiration
    if days <= 3:
        return ItemStatus.EXPIRING
    if days <= 7:
        return ItemStatus.USE_SOON
    return ItemStatus.GOOD


def expiration_date_for(days_until_expiration: int, today: date | None = None) -> date:
    """Return the calendar date ``days_until_expiration`` days from today."""

    base = today or date.today()
    return base + timedelta(days=days_until_expiration)
