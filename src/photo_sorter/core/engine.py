"""
Review engine: the state machine behind the card stack.

A decision moves through three phases::

    Idle --submit_intent--> Transitioning --animator done--> Committing --settled--> Idle

Only Idle accepts a new intent, so at most one decision (and at most one copy)
is in flight, and copies happen in queue order. Both directions advance the
position by one; the direction only picks the effect (commit or discard).
"""

import asyncio
import functools
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from photo_sorter.core.animator import Pose, REST_POSE, TransitionAnimator, fly_out_pose, play
from photo_sorter.core.item import Item, Queue
from photo_sorter.errors import CommitFailure, ErrorKind, LoadFailure
from photo_sorter.utils.logger import setup_logger

logger = setup_logger(__name__)

Executor = Callable[[Item, Path], Awaitable[Any]]
ItemSource = Callable[[Path], List[Item]]
Listener = Callable[["ReviewSnapshot"], None]


class Direction(str, Enum):
    """A discrete decision submitted by the user."""

    FORWARD = "forward"
    BACKWARD = "backward"


class Effect(str, Enum):
    """What happens to the decided item once its card has flown out."""

    COMMIT = "commit"
    DISCARD = "discard"


EFFECTS = {Direction.FORWARD: Effect.COMMIT, Direction.BACKWARD: Effect.DISCARD}


class PhaseKind(str, Enum):
    IDLE = "idle"
    TRANSITIONING = "transitioning"
    COMMITTING = "committing"


@dataclass(frozen=True)
class Phase:
    """Engine phase, carrying the direction of the decision in flight."""

    kind: PhaseKind
    direction: Optional[Direction] = None

    @property
    def is_idle(self) -> bool:
        return self.kind is PhaseKind.IDLE

    def __str__(self) -> str:
        if self.direction is None:
            return self.kind.value
        return f"{self.kind.value}({self.direction.value})"


IDLE = Phase(PhaseKind.IDLE)


@dataclass
class ReviewSession:
    """Mutable review state; owned by the engine only."""

    queue: Queue
    session_id: int
    position: int = 0
    phase: Phase = IDLE
    deciding: Optional[Item] = None
    last_error: Optional[CommitFailure] = None


@dataclass(frozen=True)
class ReviewSnapshot:
    """Read-only view of the engine handed to the presentation layer."""

    current_item: Optional[Item]
    deciding_item: Optional[Item]
    upcoming: Tuple[Item, ...]
    phase: Phase
    position: int
    total: int
    pose: Pose
    exhausted: bool
    last_error: Optional[CommitFailure] = None
    load_error: Optional[LoadFailure] = None
    destination: Optional[Path] = None
    committed: int = 0
    discarded: int = 0
    failed: int = 0


@dataclass
class ReviewStats:
    committed: int = 0
    discarded: int = 0
    failed: int = 0


class ReviewEngine:
    """Owns the queue position and sequences transitions and side effects."""

    def __init__(
        self,
        executor: Executor,
        destination: Optional[Path] = None,
        animator: Optional[TransitionAnimator] = None,
        targets: Optional[Dict[Direction, Pose]] = None,
        source: Optional[ItemSource] = None,
        autoplay: bool = True,
        frame_delay: Optional[float] = None,
        stack_depth: int = 3,
    ):
        """
        Initialize the review engine.

        Args:
            executor: Async callable copying an item to a destination
            destination: Destination passed to the executor on commit
            animator: Transition animator (default: TransitionAnimator())
            targets: Target pose per direction (default: fly out of a unit-wide view)
            source: Item source used by load_directory()
            autoplay: Drive transitions on the event loop; when False the
                caller iterates `transition` itself
            frame_delay: Seconds between autoplayed frames (default: the
                animator's frame interval)
            stack_depth: Number of upcoming items included in snapshots
        """
        self.destination = Path(destination) if destination else None
        self.animator = animator or TransitionAnimator()
        self.targets = dict(targets) if targets else {
            Direction.FORWARD: fly_out_pose(1.0, 1),
            Direction.BACKWARD: fly_out_pose(1.0, -1),
        }
        self.autoplay = autoplay
        self.frame_delay = self.animator.frame_interval if frame_delay is None else frame_delay
        self.stack_depth = stack_depth
        self.load_error: Optional[LoadFailure] = None
        self.transition: Optional[Iterator[Pose]] = None
        self.stats = ReviewStats()

        self._executor = executor
        self._source = source
        self._listeners: List[Listener] = []
        self._transition_task: Optional[asyncio.Future] = None
        self._commit_task: Optional[asyncio.Future] = None
        self._session = ReviewSession(queue=Queue(), session_id=0)

    # ------------------------------------------------------------------
    # Queue loading
    # ------------------------------------------------------------------

    def load_queue(self, items: Iterable[Item]) -> None:
        """
        Start a new session over `items`.

        Any decision in flight is abandoned: its transition is dropped and a
        copy still running for it is not awaited; its result is ignored.
        """
        queue = Queue(items)
        if not self._session.phase.is_idle:
            logger.info(f"Reload while {self._session.phase}; abandoning decision in flight")

        if self._transition_task is not None and not self._transition_task.done():
            self._transition_task.cancel()
        self._transition_task = None
        self._commit_task = None
        self.transition = None
        self.animator.reset()

        self._session = ReviewSession(queue=queue, session_id=self._session.session_id + 1)
        self.stats = ReviewStats()
        logger.info(f"Loaded {len(queue)} items for review")
        self._notify()

    async def load_directory(self, directory: Path) -> bool:
        """
        Load the queue from the item source.

        On failure the current session is left untouched and the failure is
        kept in `load_error`.

        Args:
            directory: Directory handed to the item source

        Returns:
            True if the queue was replaced
        """
        if self._source is None:
            raise ValueError("ReviewEngine has no item source")

        try:
            items = await asyncio.to_thread(self._source, Path(directory))
        except LoadFailure as e:
            self.load_error = e
        except OSError as e:
            self.load_error = LoadFailure.from_os_error(e, path=str(directory))
        else:
            self.load_error = None
            self.load_queue(items)
            return True

        logger.error(f"Could not load {directory}: {self.load_error}")
        self._notify()
        return False

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def submit_intent(self, direction: Direction) -> bool:
        """
        Begin a decision on the active item.

        Ignored while another decision is in flight, when the queue is
        exhausted, and for a backward intent on the first item.

        Returns:
            True if the intent was accepted
        """
        direction = Direction(direction)
        session = self._session

        if not session.phase.is_idle:
            logger.debug(f"Ignoring {direction.value}: {session.phase} in progress")
            return False
        if self.is_exhausted():
            logger.debug(f"Ignoring {direction.value}: queue exhausted")
            return False
        if direction is Direction.BACKWARD and session.position == 0:
            logger.debug("Ignoring backward on the first item")
            return False

        # Autoplay needs a running loop; fail before touching the session
        loop = asyncio.get_running_loop() if self.autoplay else None

        session.phase = Phase(PhaseKind.TRANSITIONING, direction)
        session.deciding = session.queue[session.position]
        samples = self.animator.start(self.targets[direction], self.on_animator_complete)
        logger.debug(f"{direction.value} accepted for {session.deciding.key}")

        if loop is not None:
            self._transition_task = loop.create_task(
                play(samples, self._on_frame, self.frame_delay)
            )
            self._transition_task.add_done_callback(
                functools.partial(self._on_transition_done, session.session_id)
            )
        else:
            self.transition = samples

        self._notify()
        return True

    def on_animator_complete(self) -> None:
        """Advance past the decided item and fire its effect."""
        session = self._session
        if session.phase.kind is not PhaseKind.TRANSITIONING:
            logger.debug(f"Ignoring stale transition completion during {session.phase}")
            return

        direction = session.phase.direction
        effect = EFFECTS[direction]
        if effect is Effect.COMMIT:
            # Copies run as tasks on the running loop; without one, fail
            # before the position moves
            asyncio.get_running_loop()

        session.phase = Phase(PhaseKind.COMMITTING, direction)
        self.transition = None

        item = self._advance(effect)
        self._notify()
        self._dispatch(effect, item, session.session_id)

    def _advance(self, effect: Effect) -> Item:
        """The only place the position moves: one step forward, whatever the effect."""
        session = self._session
        item = session.queue[session.position]
        session.position += 1
        logger.debug(f"Advanced to {session.position}/{len(session.queue)} ({effect.value})")
        return item

    def _dispatch(self, effect: Effect, item: Item, session_id: int) -> None:
        if effect is Effect.DISCARD:
            logger.info(f"Discarded {item.key}")
            self.stats.discarded += 1
            self._settle(None)
            return

        if self.destination is None:
            self._settle(CommitFailure(
                ErrorKind.NOT_FOUND, "No destination directory selected", path=item.key
            ))
            return

        loop = asyncio.get_running_loop()
        try:
            self._commit_task = loop.create_task(self._executor(item, self.destination))
        except Exception as e:
            self._settle(self._as_commit_failure(e, item))
            return

        self._commit_task.add_done_callback(
            functools.partial(self._on_commit_done, session_id, item)
        )

    def _on_transition_done(self, session_id: int, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return

        logger.error(f"Transition failed: {exc!r}")
        session = self._session
        if session_id != session.session_id or session.phase.kind is not PhaseKind.TRANSITIONING:
            return
        # The card never left: drop the decision and stay on the same item
        session.phase = IDLE
        session.deciding = None
        self._transition_task = None
        self.animator.reset()
        self._notify()

    def _on_commit_done(self, session_id: int, item: Item, task: asyncio.Future) -> None:
        if session_id != self._session.session_id:
            exc = None if task.cancelled() else task.exception()
            if exc is not None:
                logger.debug(f"Abandoned commit for {item.key} failed: {exc}")
            else:
                logger.debug(f"Dropping result of abandoned commit for {item.key}")
            return

        if task.cancelled():
            error: Optional[CommitFailure] = CommitFailure(
                ErrorKind.IO_ERROR, "Copy was cancelled", path=item.key
            )
        else:
            exc = task.exception()
            error = self._as_commit_failure(exc, item) if exc else None

        if error is None:
            logger.info(f"Committed {item.key}")
            self.stats.committed += 1
        self._settle(error)

    def _settle(self, error: Optional[CommitFailure]) -> None:
        session = self._session
        if error is not None:
            key = session.deciding.key if session.deciding else "?"
            logger.warning(f"Commit failed for {key}: {error}")
            self.stats.failed += 1

        session.last_error = error
        session.phase = IDLE
        session.deciding = None
        self._commit_task = None
        self.animator.reset()
        self._notify()

    @staticmethod
    def _as_commit_failure(error: BaseException, item: Item) -> CommitFailure:
        if isinstance(error, CommitFailure):
            return error
        if isinstance(error, OSError):
            return CommitFailure.from_os_error(error, path=item.key)
        return CommitFailure(ErrorKind.IO_ERROR, str(error) or type(error).__name__, path=item.key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def position(self) -> int:
        return self._session.position

    @property
    def phase(self) -> Phase:
        return self._session.phase

    @property
    def last_error(self) -> Optional[CommitFailure]:
        return self._session.last_error

    def current_item(self) -> Optional[Item]:
        """Active item, or None once the queue is exhausted."""
        return self._session.queue.get(self._session.position)

    def is_exhausted(self) -> bool:
        return self._session.position >= len(self._session.queue)

    def snapshot(self) -> ReviewSnapshot:
        """Capture the state the presentation layer renders from."""
        session = self._session
        return ReviewSnapshot(
            current_item=self.current_item(),
            deciding_item=session.deciding,
            upcoming=session.queue.window(session.position + 1, self.stack_depth),
            phase=session.phase,
            position=session.position,
            total=len(session.queue),
            pose=self.animator.pose if not session.phase.is_idle else REST_POSE,
            exhausted=self.is_exhausted(),
            last_error=session.last_error,
            load_error=self.load_error,
            destination=self.destination,
            committed=self.stats.committed,
            discarded=self.stats.discarded,
            failed=self.stats.failed,
        )

    # ------------------------------------------------------------------
    # Presentation hooks
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        """Call `listener` with a fresh snapshot after every state change and frame."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    async def wait_settled(self) -> None:
        """
        Wait until the decision in flight (if any) is back to Idle.

        Raises:
            RuntimeError: If the engine is mid-decision with nothing left to
                drive it there (e.g. a manual transition nobody iterates)
        """
        while not self._session.phase.is_idle:
            live = [
                t for t in (self._transition_task, self._commit_task)
                if t is not None and not t.done()
            ]
            if live:
                await asyncio.wait(live)
            # Let done-callbacks run
            await asyncio.sleep(0)
            if live or self._session.phase.is_idle:
                continue

            if not self.autoplay and self.transition is not None:
                raise RuntimeError("Transition is not being driven (autoplay is off)")
            raise RuntimeError(f"Decision stuck in {self._session.phase} with nothing in flight")

    def _on_frame(self, pose: Pose) -> None:
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {snapshot.phase}")
