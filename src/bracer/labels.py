"""
Unique Label Allocator
======================

Generates local labels that are unique for the life of the process, so
that expanding the same macro any number of times never produces two
identical branch targets.

Labels have the form `<prefix><n>`, where n comes from a single
process-wide counter that starts at zero, is never reset and is never
reused. The counter is guarded by a lock so concurrent expansions on
different threads always receive distinct numbers. Callers may rely on
uniqueness only: labels handed out on different threads say nothing about
the order of the calls.

Example
-------
>>> from bracer.labels import next_local_label
>>> next_local_label()
'.L_bracer_local_label_0'
>>> next_local_label()
'.L_bracer_local_label_1'
"""

from typing import Optional
import itertools
import logging
import threading

from bracer.config import DEFAULT_LABEL_PREFIX

logger = logging.getLogger(__name__)


class LabelAllocator:
    """
    Thread-safe monotonically increasing label counter.

    Most code uses the process-wide `default_allocator`. Separate instances
    are only useful where labels need not be unique against it, such as
    in tests.

    Attributes:
        prefix: Prefix used when next_label() is called without one
    """

    def __init__(self, prefix: str = DEFAULT_LABEL_PREFIX, start: int = 0):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_number(self) -> int:
        """Draw the next integer from the counter."""
        with self._lock:
            return next(self._counter)

    def next_label(self, prefix: Optional[str] = None) -> str:
        """
        Allocate a fresh label.

        Args:
            prefix: Overrides the allocator's prefix for this label

        Returns:
            A label that no other call has returned
        """
        label = f"{prefix if prefix is not None else self.prefix}{self.next_number()}"
        logger.debug(f"Allocated label {label}")
        return label


# Process-wide allocator, created once at import and never torn down
default_allocator = LabelAllocator()


def next_local_label(prefix: Optional[str] = None) -> str:
    """Allocate a label from the process-wide allocator."""
    return default_allocator.next_label(prefix)
