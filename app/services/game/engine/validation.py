"""Validation results for interaction guards and action processing.

Rejected interactions are not errors from the player's point of view: the
input is ignored and state stays unchanged. ValidationResult carries the
reason so callers can log it or answer a socket request without raising.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating or applying one input."""

    is_valid: bool = True
    error_code: str | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(is_valid=True)

    @classmethod
    def error(cls, code: str, message: str) -> "ValidationResult":
        """Create a validation failure with error details."""
        return cls(
            is_valid=False,
            error_code=code,
            error_message=message,
        )


# Shared rejection reasons
PROMOTION_PENDING = ValidationResult.error("PROMOTION_PENDING", "Waiting for a promotion choice")
OPPONENT_THINKING = ValidationResult.error("OPPONENT_THINKING", "The opponent is thinking")
BROWSING_HISTORY = ValidationResult.error("BROWSING_HISTORY", "Viewing a past position")
GAME_FINISHED = ValidationResult.error("GAME_FINISHED", "Game has already finished")
