import logging

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Holds the opponent strategy the user selected.

    Read once per opponent turn, so a change takes effect from the next
    request on.
    """

    def __init__(self, strategy: str):
        if not strategy or not strategy.strip():
            raise ValueError("Strategy cannot be empty")
        self._strategy = strategy

    def selected_strategy(self) -> str:
        return self._strategy

    def select(self, strategy: str) -> None:
        if not strategy or not strategy.strip():
            raise ValueError("Strategy cannot be empty")
        logger.debug("Strategy changed: %s -> %s", self._strategy, strategy)
        self._strategy = strategy
