# safewalk/services/request_tracker.py
import asyncio
import itertools
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from safewalk.core.logger import logger

T = TypeVar("T")


class RequestSuperseded(Exception):
    """
    Raised inside a route request that a newer request of the same session
    replaced before it finished.
    """

    def __init__(self, session_id: str, generation: int) -> None:
        super().__init__(f"route request {generation} of session {session_id!r} was superseded")
        self.session_id = session_id
        self.generation = generation


@dataclass
class _InFlight:
    generation: int
    task: Optional[asyncio.Task]


class RouteRequestTracker:
    """
    Keeps only the latest route request of each session alive.

    Starting a request cancels the session's previous in-flight request; its
    result, if it still arrives, is discarded.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Generations are unique across sessions so a dropped entry is never reused
        self._generations = itertools.count(1)
        self._in_flight: Dict[str, _InFlight] = {}

    def begin(self, session_id: str) -> int:
        task = asyncio.current_task()

        with self._lock:
            generation = next(self._generations)
            previous = self._in_flight.get(session_id)
            self._in_flight[session_id] = _InFlight(generation=generation, task=task)

        if (
            previous is not None
            and previous.task is not None
            and previous.task is not task
            and not previous.task.done()
        ):
            logger.info(
                "Route request {} of session {!r} superseded by request {}.",
                previous.generation,
                session_id,
                generation,
            )
            previous.task.get_loop().call_soon_threadsafe(previous.task.cancel)

        return generation

    def is_current(self, session_id: str, generation: int) -> bool:
        with self._lock:
            current = self._in_flight.get(session_id)
            return current is not None and current.generation == generation

    def finish(self, session_id: str, generation: int) -> None:
        with self._lock:
            current = self._in_flight.get(session_id)
            if current is not None and current.generation == generation:
                del self._in_flight[session_id]

    async def run(self, session_id: str, work: Callable[[], Awaitable[T]]) -> T:
        """
        Run work() as the session's current request.

        Raises RequestSuperseded when a newer request of the same session
        started before this one completed.
        """
        generation = self.begin(session_id)
        try:
            try:
                result = await work()
            except asyncio.CancelledError:
                if self.is_current(session_id, generation):
                    raise
                task = asyncio.current_task()
                if task is not None:
                    task.uncancel()
                raise RequestSuperseded(session_id, generation) from None

            if not self.is_current(session_id, generation):
                raise RequestSuperseded(session_id, generation)
            return result
        finally:
            self.finish(session_id, generation)
