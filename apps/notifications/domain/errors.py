from __future__ import annotations


class NotificationError(ValueError):
    pass


class NotificationNotFoundError(NotificationError):
    pass
