from __future__ import annotations


class ActionError(Exception):
    """Recoverable in-turn failure; the resolver turns it into an outcome reason."""

    reason = "action_failed"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class InvalidMove(ActionError):
    reason = "invalid_move"


class InventoryFull(ActionError):
    reason = "inventory_full"


class ItemNotFound(ActionError):
    reason = "item_not_found"


class InvalidRoomIndex(ActionError):
    reason = "invalid_room_index"


class InvalidChoice(ActionError):
    reason = "invalid_choice"


class AttackNotPermitted(ActionError):
    reason = "attack_not_permitted"
