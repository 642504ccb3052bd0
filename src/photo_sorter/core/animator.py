"""
Spring-driven card transition.

The animator moves the active card from its current pose toward a target pose
and reports completion exactly once. Frames are produced lazily so whoever
drives them (the event loop in the app, a plain ``for`` loop in tests)
decides the pace.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

from photo_sorter.errors import AnimatorBusyError
from photo_sorter.utils.config import Config
from photo_sorter.utils.logger import setup_logger

logger = setup_logger(__name__)

# Physics is integrated in 1ms sub-steps regardless of the frame interval
SUBSTEP_SECONDS = 0.001
MIN_TOLERANCE = 1e-4
MAX_ANIMATION_SECONDS = 10.0


@dataclass(frozen=True)
class Pose:
    """Visual state of a card: horizontal offset, rotation (degrees), scale."""

    x: float = 0.0
    rotation: float = 0.0
    scale: float = 1.0

    def as_list(self) -> List[float]:
        return [self.x, self.rotation, self.scale]


REST_POSE = Pose()


@dataclass(frozen=True)
class SpringConfig:
    """Spring parameters; defaults match a heavily damped fly-out."""

    tension: float = 200.0
    friction: float = 50.0
    mass: float = 1.0
    precision: float = 0.01  # fraction of the distance travelled per axis


def fly_out_pose(width: float, sign: int) -> Pose:
    """Pose of a card thrown off one side of a view `width` wide."""
    return Pose(x=sign * width, rotation=sign * 30.0, scale=0.8)


class TransitionAnimator:
    """Produces pose samples for one transition at a time."""

    def __init__(
        self,
        spring: Optional[SpringConfig] = None,
        frame_interval: float = 1 / 60,
    ):
        """
        Initialize the animator.

        Args:
            spring: Spring parameters (default: SpringConfig())
            frame_interval: Simulated seconds between two samples
        """
        if frame_interval <= 0:
            raise ValueError("frame_interval must be positive")

        self.spring = spring or SpringConfig()
        self.frame_interval = frame_interval
        self.pose = REST_POSE
        self._generation = 0
        self._running = False

    @classmethod
    def from_config(cls, config: Config) -> "TransitionAnimator":
        """Build an animator from the 'animation' settings."""
        spring = SpringConfig(
            tension=float(config.get("animation.tension", 200.0)),
            friction=float(config.get("animation.friction", 50.0)),
            mass=float(config.get("animation.mass", 1.0)),
            precision=float(config.get("animation.precision", 0.01)),
        )
        return cls(spring, float(config.get("animation.frame_interval", 1 / 60)))

    @property
    def is_running(self) -> bool:
        """True between start() and completion or reset()."""
        return self._running

    def start(self, target: Pose, on_complete: Callable[[], None]) -> Iterator[Pose]:
        """
        Begin a transition toward `target`.

        Args:
            target: Pose to converge on
            on_complete: Called once, after the last sample, when the
                transition converged (never called if reset() supersedes it)

        Returns:
            Lazy iterator of poses ending exactly on `target`

        Raises:
            AnimatorBusyError: If the previous transition has not finished
        """
        if self._running:
            raise AnimatorBusyError("A transition is already running")

        self._running = True
        self._generation += 1
        logger.debug(f"Transition {self._generation} started toward {target}")
        return self._samples(self._generation, self.pose, target, on_complete)

    def reset(self) -> None:
        """Snap to the rest pose immediately, abandoning any running transition."""
        self._generation += 1
        self._running = False
        self.pose = REST_POSE

    def _samples(
        self,
        generation: int,
        origin: Pose,
        target: Pose,
        on_complete: Callable[[], None],
    ) -> Iterator[Pose]:
        spring = self.spring
        values = origin.as_list()
        goals = target.as_list()
        velocities = [0.0] * len(values)
        tolerances = [
            max(abs(goal - value) * spring.precision, MIN_TOLERANCE)
            for value, goal in zip(values, goals)
        ]
        substeps = max(1, round(self.frame_interval / SUBSTEP_SECONDS))
        h = self.frame_interval / substeps
        max_frames = int(MAX_ANIMATION_SECONDS / self.frame_interval)

        for _ in range(max_frames):
            if generation != self._generation:
                return

            for _ in range(substeps):
                for i, goal in enumerate(goals):
                    force = -spring.tension * (values[i] - goal)
                    damping = -spring.friction * velocities[i]
                    velocities[i] += (force + damping) / spring.mass * h
                    values[i] += velocities[i] * h

            settled = all(
                abs(goal - value) <= tol and abs(velocity) * self.frame_interval <= tol
                for value, goal, velocity, tol in zip(values, goals, velocities, tolerances)
            )
            if settled:
                break

            self.pose = Pose(*values)
            yield self.pose

        if generation != self._generation:
            return

        self.pose = target
        yield target

        # The consumer may have reset us while suspended on the final sample
        if generation != self._generation:
            return

        self._running = False
        logger.debug(f"Transition {generation} complete")
        on_complete()


async def play(
    samples: Iterator[Pose],
    on_frame: Optional[Callable[[Pose], None]] = None,
    delay: float = 0.0,
) -> None:
    """
    Drive a sample iterator on the event loop, yielding between frames.

    Args:
        samples: Iterator returned by TransitionAnimator.start()
        on_frame: Called with every pose, e.g. to redraw
        delay: Wall-clock seconds to sleep between frames
    """
    for pose in samples:
        if on_frame:
            on_frame(pose)
        await asyncio.sleep(delay)
