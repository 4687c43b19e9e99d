from contextlib import contextmanager

from utils.logger import get_logger

_logger = get_logger(__name__)


class StoreError(Exception):
    """Base class for errors the UI knows how to show."""

    def __init__(self, message: str = "Something went wrong. Please try again."):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Bad input, detected before anything is sent to the backend."""


class AuthError(StoreError):
    pass


class PermissionDenied(StoreError):
    pass


class BackendError(StoreError):
    """The data store (or another backend) failed; the cause is chained."""


class OrderPlacementError(StoreError):
    def __init__(self, message: str = "We could not place your order. Please try again."):
        super().__init__(message)


@contextmanager
def backend_errors(action: str, message: str = "Something went wrong. Please try again."):
    """
    Log any backend failure raised inside the block and re-raise it as a
    BackendError carrying `message`. StoreErrors pass through untouched.

        with backend_errors("saving product"):
            await crud.update_product(...)
    """
    try:
        yield
    except StoreError:
        raise
    except Exception as exc:
        _logger.error(f"Error {action}: {exc}")
        raise BackendError(message) from exc
