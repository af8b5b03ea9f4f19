"""Periodic polling loop with per-matchup overlap protection."""

import asyncio
import logging
from typing import Callable, Optional

from .exceptions import MatchupLookupError, ProviderError, SleeperLiveError
from .matchup_service import MatchupService
from .models import MatchupSnapshot

logger = logging.getLogger('sleeper_live.poller')

UpdateCallback = Callable[[MatchupSnapshot], None]
ErrorCallback = Callable[[SleeperLiveError], None]


class LivePoller:
    """
    Runs MatchupService.run_cycle on a fixed interval.

    A tick that arrives while the previous cycle for the same matchup is
    still running is skipped, never run alongside it. Each cycle is
    bounded by cycle_timeout. Every failure is logged and reported
    through on_error (unexpected ones wrapped in SleeperLiveError), and
    the loop keeps going.
    """

    def __init__(
        self,
        service: MatchupService,
        username: str,
        league_id: str,
        poll_interval: float = 5.0,
        cycle_timeout: float = 30.0,
        on_update: Optional[UpdateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.service = service
        self.username = username
        self.league_id = league_id
        self.poll_interval = poll_interval
        self.cycle_timeout = cycle_timeout
        self.on_update = on_update
        self.on_error = on_error
        self.last_snapshot: Optional[MatchupSnapshot] = None
        self.skipped_cycles = 0
        self._in_flight: set[str] = set()
        self._tasks: set[asyncio.Task] = set()
        self._stop: Optional[asyncio.Event] = None

    @property
    def key(self) -> str:
        return f'{self.league_id}:{self.username}'

    def _report(self, error: SleeperLiveError) -> None:
        if self.on_error is not None:
            self.on_error(error)

    async def poll_once(self) -> Optional[MatchupSnapshot]:
        """Run one cycle unless one is already in flight. Returns None if skipped or failed."""
        if self.key in self._in_flight:
            self.skipped_cycles += 1
            logger.info(f'Previous cycle for {self.key} still running; skipping this tick')
            return None

        self._in_flight.add(self.key)
        try:
            snapshot = await asyncio.wait_for(
                self.service.run_cycle(self.username, self.league_id),
                timeout=self.cycle_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f'Cycle for {self.key} timed out after {self.cycle_timeout}s')
            self._report(ProviderError(f'Cycle timed out after {self.cycle_timeout}s'))
            return None
        except MatchupLookupError as e:
            logger.error(f'Matchup lookup failed for {self.key}: {e}')
            self._report(e)
            return None
        except ProviderError as e:
            logger.warning(f'Provider failure for {self.key} ({e.url or "unknown url"}): {e}')
            self._report(e)
            return None
        except Exception as e:
            logger.exception(f'Unexpected failure in cycle for {self.key}')
            error = SleeperLiveError(f'Cycle for {self.key} failed: {e!r}')
            error.__cause__ = e
            self._report(error)
            return None
        finally:
            self._in_flight.discard(self.key)

        self.last_snapshot = snapshot
        if self.on_update is not None:
            self.on_update(snapshot)
        return snapshot

    def _spawn(self) -> None:
        task = asyncio.create_task(self.poll_once())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            # raised by an on_update/on_error callback
            logger.error(f'Poll task for {self.key} failed', exc_info=task.exception())

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Poll until stop() is called (or max_ticks ticks have fired).

        Ticks fire every poll_interval seconds regardless of how long a
        cycle takes; overlapping ticks are dropped by poll_once.
        """
        self._stop = asyncio.Event()
        ticks = 0
        logger.info(f'Polling {self.key} every {self.poll_interval}s')

        while not self._stop.is_set():
            self._spawn()
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.info(f'Stopped polling {self.key} after {ticks} ticks ({self.skipped_cycles} skipped)')

    def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()
