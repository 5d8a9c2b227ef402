"""Automated opponents that satisfy the MoveSupplier contract."""

import logging
import random

import httpx
from pydantic import ValidationError

from app.config import Settings
from app.services.game.engine.interfaces import MoveSupplier, SupplierRequest, SupplierResponse

logger = logging.getLogger(__name__)


class RandomMoveSupplier:
    """Plays a uniformly random move from the enumerated legal moves."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    async def select_move(self, request: SupplierRequest) -> SupplierResponse:
        if not request.legal_moves:
            return SupplierResponse.error(f"No legal moves for {request.player.value}")

        move = self._rng.choice(request.legal_moves)
        logger.debug(
            "Random move for %s chosen from %d candidates",
            request.player.value,
            len(request.legal_moves),
        )
        return SupplierResponse(move=move, status=f"Picked 1 of {len(request.legal_moves)} moves")


class HttpMoveSupplier:
    """Asks a remote move-selection service over HTTP.

    POSTs the SupplierRequest as JSON to `{base_url}/select-move` and expects a
    SupplierResponse body. Transport failures, non-2xx statuses and malformed
    bodies all come back as error responses so the same player can retry.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the httpx async client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def select_move(self, request: SupplierRequest) -> SupplierResponse:
        client = await self._get_http_client()
        url = f"{self.base_url}/select-move"

        try:
            response = await client.post(url, json=request.model_dump(mode="json", by_alias=True))
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.warning("Move service timed out: %s", url)
            return SupplierResponse.error("The opponent took too long to answer")
        except httpx.HTTPStatusError as e:
            logger.warning("Move service returned %d: %s", e.response.status_code, url)
            detail = e.response.text.strip() or e.response.reason_phrase
            return SupplierResponse.error(
                f"Opponent service error ({e.response.status_code}): {detail}"
            )
        except httpx.HTTPError as e:
            logger.warning("Move service unreachable: %s (%s)", url, e)
            return SupplierResponse.error(f"Could not reach the opponent: {e}")

        try:
            result = SupplierResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Malformed move service response: %s", e)
            return SupplierResponse.error("The opponent sent an unreadable answer")

        logger.debug(
            "Move service answered: is_error=%s, has_move=%s",
            result.is_error,
            result.move is not None,
        )
        return result

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None


def build_move_supplier(settings: Settings, rng: random.Random | None = None) -> MoveSupplier:
    """HTTP supplier when a service URL is configured, random play otherwise."""
    if settings.MOVE_SUPPLIER_URL:
        logger.info("Using HTTP move supplier at %s", settings.MOVE_SUPPLIER_URL)
        return HttpMoveSupplier(settings.MOVE_SUPPLIER_URL, timeout=settings.MOVE_SUPPLIER_TIMEOUT)

    if rng is None and settings.RANDOM_SEED is not None:
        rng = random.Random(settings.RANDOM_SEED)
    logger.info("Using random move supplier")
    return RandomMoveSupplier(rng)
