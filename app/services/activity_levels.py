from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass

from app.services.daily_records import InvalidArgument

MAX_LEVEL = 4


@dataclass(frozen=True)
class ActivityLevelClassifier:
    """Buckets a day's page count into a 0-4 heatmap intensity.

    ``thresholds`` are the upper bounds (inclusive) of levels 1-3; anything
    above the last one is level 4.
    """

    thresholds: tuple[int, ...]
    name: str = "custom"

    def __post_init__(self) -> None:
        thresholds = tuple(self.thresholds)
        if len(thresholds) != MAX_LEVEL - 1:
            raise InvalidArgument(
                f"Expected {MAX_LEVEL - 1} break points, got {len(thresholds)}"
            )
        if any(isinstance(t, bool) or not isinstance(t, int) or t < 1 for t in thresholds):
            raise InvalidArgument("Break points must be positive integers.")
        if any(low >= high for low, high in zip(thresholds, thresholds[1:])):
            raise InvalidArgument("Break points must be strictly ascending.")
        object.__setattr__(self, "thresholds", thresholds)

    def classify(self, pages_read: int) -> int:
        if isinstance(pages_read, bool) or not isinstance(pages_read, int):
            raise InvalidArgument(f"pages_read must be an integer, got {pages_read!r}")
        if pages_read < 0:
            raise InvalidArgument(f"pages_read must be non-negative, got {pages_read}")
        if pages_read == 0:
            return 0
        return bisect_left(self.thresholds, pages_read) + 1


# Daily stats model and server-side heatmap: 1-10, 11-30, 31-60, 61+.
STANDARD_POLICY = ActivityLevelClassifier(thresholds=(10, 30, 60), name="standard")
# Calendar heatmap widget: 1-10, 11-25, 26-50, 51+.
COMPACT_POLICY = ActivityLevelClassifier(thresholds=(10, 25, 50), name="compact")

POLICIES: dict[str, ActivityLevelClassifier] = {
    STANDARD_POLICY.name: STANDARD_POLICY,
    COMPACT_POLICY.name: COMPACT_POLICY,
}

DEFAULT_POLICY_NAME = STANDARD_POLICY.name


def get_classifier(name: str | None = None) -> ActivityLevelClassifier:
    key = (name or DEFAULT_POLICY_NAME).strip().lower()
    try:
        return POLICIES[key]
    except KeyError as exc:
        allowed = ", ".join(sorted(POLICIES))
        raise InvalidArgument(f"Unknown activity level policy '{key}'. Expected one of: {allowed}.") from exc
