"""
Moving-window scheduling.

Windows are half-open intervals ``[start + k * shift, start + k * shift + size)``
generated while the window end does not pass the last observed timestamp.
The schedule works for datetime timestamps with ``timedelta`` durations and
for numeric timestamps with numeric durations.
"""

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional
import math
import warnings

from netts.common.exceptions import ConfigurationWarning
from netts.common.validators import check_window_parameters
from netts.common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Window:
    """A half-open time interval ``[start, end)`` at position ``index`` of a schedule."""

    index: int
    start: Any
    end: Any

    def contains(self, timestamp: Any) -> bool:
        return self.start <= timestamp < self.end


class WindowScheduler:
    """
    Lazy, finite and restartable sequence of moving windows.

    Parameters
    ----------
    min_time, max_time
        Observed time range of the event log
    window_size
        Window length (``timedelta`` or number)
    window_shift
        Offset between consecutive window starts; must be positive
    start_time : optional
        Start of the first window. Defaults to ``min_time``.
    end_time : optional
        Latest allowed window end. Defaults to ``max_time``.

    Raises
    ------
    ConfigurationError
        If window_size or window_shift is not positive

    Examples
    --------
    >>> scheduler = WindowScheduler(0, 30, window_size=10, window_shift=5)
    >>> len(scheduler)
    5
    >>> [(w.start, w.end) for w in scheduler][:2]
    [(0, 10), (5, 15)]

    Notes
    -----
    The number of windows is ``floor((end - start - size) / shift) + 1``
    when ``end - start >= size`` and 0 otherwise. An empty schedule emits a
    ``ConfigurationWarning`` instead of raising.
    """

    def __init__(
        self,
        min_time: Any,
        max_time: Any,
        window_size: Any,
        window_shift: Any,
        start_time: Optional[Any] = None,
        end_time: Optional[Any] = None
    ) -> None:
        check_window_parameters(window_size, window_shift, min_time)

        self.window_size = window_size
        self.window_shift = window_shift
        self.start_time = min_time if start_time is None else start_time
        self.end_time = max_time if end_time is None else end_time
        self._count = self._window_count()

        if self._count == 0:
            message = (
                f"Window size {window_size} is larger than the observed time range "
                f"[{self.start_time}, {self.end_time}]; no windows will be produced"
            )
            logger.warning(message)
            warnings.warn(message, ConfigurationWarning, stacklevel=2)

    def _window_count(self) -> int:
        span = self.end_time - self.start_time
        if span < self.window_size:
            return 0
        count = math.floor((span - self.window_size) / self.window_shift) + 1
        # guard against floating point error at the boundary
        while count > 0 and self._start_of(count - 1) + self.window_size > self.end_time:
            count -= 1
        while self._start_of(count) + self.window_size <= self.end_time:
            count += 1
        return count

    def _start_of(self, k: int) -> Any:
        return self.start_time + self.window_shift * k

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Window]:
        for k in range(self._count):
            start = self._start_of(k)
            yield Window(index=k, start=start, end=start + self.window_size)

    def __getitem__(self, k: int) -> Window:
        if k < 0:
            k += self._count
        if not 0 <= k < self._count:
            raise IndexError(f"Window index {k} out of range for {self._count} windows")
        start = self._start_of(k)
        return Window(index=k, start=start, end=start + self.window_size)

    def windows(self) -> List[Window]:
        """All windows of the schedule as a list."""
        return list(self)

    def __repr__(self) -> str:
        return (f"WindowScheduler(start={self.start_time}, end={self.end_time}, "
                f"size={self.window_size}, shift={self.window_shift}, windows={self._count})")
