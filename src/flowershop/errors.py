"""Custom exceptions for flowershop."""


class FlowershopError(Exception):
    """Base exception for all flowershop errors."""

    pass


class FlowerNotFoundError(FlowershopError):
    """Raised when a warehouse stock ID doesn't exist."""

    def __init__(self, flower_id: int):
        self.flower_id = flower_id
        super().__init__(f"Flower not found: {flower_id}")


class NoteNotFoundError(FlowershopError):
    """Raised when a note ID doesn't exist."""

    def __init__(self, note_id: int):
        self.note_id = note_id
        super().__init__(f"Note not found: {note_id}")


class OrderNotFoundError(FlowershopError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class UserNotFoundError(FlowershopError):
    """Raised when a user ID doesn't exist."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class DuplicateFlowerError(FlowershopError):
    """Raised when a stock record would take a name another record already has."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Flower already in stock under another record: {name}")


class UserExistsError(FlowershopError):
    """Raised when creating a user whose username is taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User already exists: {username}")


class StorageError(FlowershopError):
    """Raised when the storage backend fails (connectivity, constraints)."""

    def __init__(self, operation: str, reason: str | None = None):
        self.operation = operation
        self.reason = reason
        msg = f"Storage operation failed: {operation}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
