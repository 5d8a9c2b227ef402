"""Asynchronous automated-opponent pipeline.

At most one request is ever outstanding: the pipeline holds a single task
handle, and `busy` is simply "a handle exists". The handle is released before
the completion callback runs, so completing one turn may schedule the next
(self-play) without re-entering the caller synchronously.
"""

import asyncio
import logging
from collections.abc import Callable

from app.schemas.game_engine import Player

from .interfaces import MoveSupplier, PreferenceSource, SupplierRequest, SupplierResponse

logger = logging.getLogger(__name__)

RequestFactory = Callable[[Player, str], SupplierRequest]
StartedCallback = Callable[[Player, str], None]
CompletionCallback = Callable[[Player, SupplierResponse], None]


class OpponentPipeline:
    """Requests moves from a MoveSupplier, one at a time.

    Args:
        supplier: The automated opponent.
        preferences: Read once per request for the strategy identifier.
        request_factory: Builds the supplier request for (player, strategy).
        on_started: Called when the request is about to be issued.
        on_complete: Called with the supplier outcome. Exceptions from
            building the request, from the supplier, or from applying the
            move arrive here as error responses.
    """

    def __init__(
        self,
        supplier: MoveSupplier,
        preferences: PreferenceSource,
        request_factory: RequestFactory,
        on_started: StartedCallback,
        on_complete: CompletionCallback,
    ):
        self._supplier = supplier
        self._preferences = preferences
        self._request_factory = request_factory
        self._on_started = on_started
        self._on_complete = on_complete
        self._task: asyncio.Task | None = None

    @property
    def busy(self) -> bool:
        return self._task is not None

    def schedule(self, player: Player, delay: float = 0.0) -> bool:
        """Request a move for `player` after `delay` seconds.

        Must be called from within a running event loop. Returns False if a
        request is already pending.
        """
        if self._task is not None:
            logger.debug("Opponent request for %s ignored: one already pending", player.value)
            return False

        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(player, delay), name=f"opponent-{player.value}")
        logger.debug("Opponent request scheduled for %s in %.2fs", player.value, delay)
        return True

    def cancel(self) -> None:
        """Drop the pending request, if any. Its outcome is never delivered."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("Pending opponent request cancelled")

    async def join(self) -> None:
        """Wait until no request is pending, following chained requests."""
        while self._task is not None:
            task = self._task
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

    async def _run(self, player: Player, delay: float) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)

            try:
                response = await self._request(player)
            except Exception as e:
                logger.exception("Opponent request failed for player %s", player.value)
                response = SupplierResponse.error(str(e) or type(e).__name__)
        finally:
            if self._task is asyncio.current_task():
                self._task = None

        self._deliver(player, response)

    async def _request(self, player: Player) -> SupplierResponse:
        strategy = self._preferences.selected_strategy()
        request = self._request_factory(player, strategy)
        self._on_started(player, strategy)
        logger.info(
            "Requesting opponent move: player=%s, strategy=%s, candidates=%d",
            player.value,
            strategy,
            len(request.legal_moves),
        )
        return await self._supplier.select_move(request)

    def _deliver(self, player: Player, response: SupplierResponse) -> None:
        """Hand the outcome to the completion callback.

        If applying a move raises, the failure is delivered once more as an
        error response. A failing error handler is only logged.
        """
        try:
            self._on_complete(player, response)
        except Exception:
            if response.is_error:
                logger.exception("Opponent error handling failed for player %s", player.value)
                return
            logger.exception("Applying opponent move failed for player %s", player.value)
            self._deliver(
                player,
                SupplierResponse.error("Internal error: the opponent move could not be applied"),
            )
