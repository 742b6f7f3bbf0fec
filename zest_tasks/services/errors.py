"""
Access-layer errors and store-call logging
"""
from contextlib import contextmanager
from logging import Logger

from sqlalchemy.exc import SQLAlchemyError


class NotFoundError(LookupError):
    """Row missing or owned by another user"""


class ConflictError(ValueError):
    """Write rejected because it clashes with an existing row"""


@contextmanager
def store_call(logger: Logger, action: str):
    """Log a failed store call, then let the error propagate"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Error {action}: {e}")
        raise
