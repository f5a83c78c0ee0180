"""Latest progress per (title, sub-stream index); last value wins."""

from fideo.schemas import ProgressSnapshot


class ProgressAggregator:
    def __init__(self):
        self._records: dict[str, dict[int, dict[str, str]]] = {}

    def update(self, title: str, sub_index: int, metrics: dict[str, str]) -> None:
        self._records.setdefault(title, {})[sub_index] = dict(metrics)

    def clear(self, title: str, sub_index: int) -> None:
        subs = self._records.get(title)
        if subs is None:
            return
        subs.pop(sub_index, None)
        if not subs:
            del self._records[title]

    def clear_session(self, title: str) -> None:
        self._records.pop(title, None)

    def snapshot(self) -> ProgressSnapshot:
        """Point-in-time copy; callers never see the internal dicts."""
        return {
            title: {index: dict(metrics) for index, metrics in subs.items()}
            for title, subs in self._records.items()
        }

    def is_empty(self) -> bool:
        return not self._records
