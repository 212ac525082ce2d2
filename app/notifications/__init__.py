from .sender import NotificationSender
from .dispatcher import ConfirmationDispatcher

__all__ = [
    "NotificationSender",
    "ConfirmationDispatcher",
]
