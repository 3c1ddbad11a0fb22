"""
Panel exceptions.
Each carries the message shown to the user and the HTTP status to answer with.
"""


class PanelError(Exception):
    """Base class for errors surfaced to the panel user."""

    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(PanelError):
    status_code = 404


class CascadeError(PanelError):
    """A scheduled change was rolled back."""

    status_code = 500


class InvalidStatusTransition(PanelError):
    status_code = 409

    def __init__(self, current, target):
        super().__init__(f"Cannot move item from '{current}' to '{target}'")
        self.current = current
        self.target = target
