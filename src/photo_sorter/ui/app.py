"""Interactive review loop: keys in, intents to the engine, frames out."""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

import click
from rich.live import Live

from photo_sorter.core.engine import ReviewEngine, ReviewSnapshot
from photo_sorter.ui.input import KeyMap, SwipeRecognizer
from photo_sorter.ui.review import ReviewUI
from photo_sorter.utils.logger import setup_logger

logger = setup_logger(__name__)

KeyReader = Union[Callable[[], str], Callable[[], Awaitable[str]]]


class ReviewApp:
    """Runs one review session in the terminal until quit or exhaustion."""

    def __init__(
        self,
        engine: ReviewEngine,
        ui: ReviewUI,
        keymap: Optional[KeyMap] = None,
        read_key: Optional[KeyReader] = None,
        swipe: Optional[SwipeRecognizer] = None,
    ):
        """
        Initialize the app.

        Args:
            engine: Engine with a loaded queue
            ui: Renderer
            keymap: Key bindings (default: KeyMap())
            read_key: Blocking or async key reader (default: click.getchar)
            swipe: Gesture recognizer used by on_drag() (default: SwipeRecognizer())
        """
        self.engine = engine
        self.ui = ui
        self.keymap = keymap or KeyMap()
        self.read_key = read_key or click.getchar
        self.swipe = swipe or SwipeRecognizer()

    async def run(self) -> ReviewSnapshot:
        """
        Forward key presses to the engine until the user quits, or presses
        any key once the queue is exhausted. A decision still in flight is
        always allowed to finish.

        Returns:
            Final engine snapshot
        """
        with Live(
            self.ui.render(self.engine.snapshot()),
            console=self.ui.console,
            auto_refresh=False,
        ) as live:

            def redraw(snapshot: ReviewSnapshot) -> None:
                live.update(self.ui.render(snapshot), refresh=True)

            self.engine.add_listener(redraw)
            try:
                while True:
                    key = await self._next_key()
                    if self.keymap.is_quit(key):
                        logger.debug("Quit requested")
                        break

                    snapshot = self.engine.snapshot()
                    if snapshot.exhausted and snapshot.phase.is_idle:
                        break

                    direction = self.keymap.resolve(key)
                    if direction is not None:
                        self.engine.submit_intent(direction)

                await self.engine.wait_settled()
            finally:
                self.engine.remove_listener(redraw)

        return self.engine.snapshot()

    def on_drag(self, dx: float, dy: float = 0.0) -> bool:
        """
        Feed a finished pointer drag to the engine.

        Entry point for front ends with pointer input. `dx`/`dy` are in the
        same unit as the recognizer threshold (card widths by default).

        Returns:
            True if the drag was a swipe and the engine accepted it
        """
        direction = self.swipe.recognize(dx, dy)
        if direction is None:
            return False
        return self.engine.submit_intent(direction)

    async def _next_key(self) -> str:
        if inspect.iscoroutinefunction(self.read_key):
            return await self.read_key()
        # getchar blocks; keep the loop free to animate
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.read_key)
