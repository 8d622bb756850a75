from __future__ import annotations

from dataclasses import dataclass

POSITION_MOVE_CALLS = (
    ("position", "create_position"),
    ("position_manager", "create_position_simple"),
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    reason: str | None = None


def validate_position_transaction(
    transaction_kind_bytes: str,
    pool_id: str,
    token_a: str,
    token_b: str,
) -> ValidationResult:
    # transaction_kind_bytes is passed through to the sponsor unchanged; only the
    # declared pool and coin types are checked here.
    if not pool_id.startswith("0x"):
        return ValidationResult(valid=False, reason="Invalid pool ID format")

    if "::" not in token_a or "::" not in token_b:
        return ValidationResult(valid=False, reason="Invalid token type format")

    if token_a == token_b:
        return ValidationResult(valid=False, reason="Token A and Token B cannot be the same")

    return ValidationResult(valid=True)


def allowed_move_call_targets(package_id: str) -> list[str]:
    return [f"{package_id}::{module}::{function}" for module, function in POSITION_MOVE_CALLS]
