"""
Tool-use id strategies for backends that do not return invocation ids
"""

import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional


class ToolUseIdGenerator(ABC):
    """Produces the correlation ids for the tool uses of one response

    Ids returned by a single ``generate`` call must be pairwise distinct.
    """

    @abstractmethod
    def generate(self, count: int) -> List[str]:
        """Return ``count`` ids, one per tool use, in response order"""


class TimestampIdGenerator(ToolUseIdGenerator):
    """``tool_<millis>_<index>``: one clock reading per response plus the position"""

    def __init__(self, prefix: str = "tool", clock: Optional[Callable[[], float]] = None):
        self.prefix = prefix
        self._clock = clock or time.time

    def generate(self, count: int) -> List[str]:
        millis = int(self._clock() * 1000)
        return [f"{self.prefix}_{millis}_{index}" for index in range(count)]


class SequentialIdGenerator(ToolUseIdGenerator):
    """Deterministic ``<prefix>_<n>`` ids, unique for the life of the generator"""

    def __init__(self, prefix: str = "tool", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def generate(self, count: int) -> List[str]:
        with self._lock:
            return [f"{self.prefix}_{next(self._counter)}" for _ in range(count)]
