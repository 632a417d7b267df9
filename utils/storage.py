import logging
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from models import db
from classes.errors import StorageFailure

logger = logging.getLogger(__name__)


def storage_guard(f):
    """Roll back and surface store errors as a retryable StorageFailure.

    Integrity conflicts are expected to be handled inside the wrapped call;
    anything that still escapes is an infrastructure fault.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Storage failure in %s", f.__qualname__)
            raise StorageFailure("The record store is temporarily unavailable", reason="storage_unavailable") from e

    return decorated_function
