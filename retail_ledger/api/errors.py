"""
Mapping from ledger errors to HTTP responses.

Routers catch ValueError (every business rule violation is one)
and LedgerError (storage failures are not), roll back, and raise
the HTTPException built here.
"""

import logging

from fastapi import HTTPException

from retail_ledger.services.errors import (
    ConcurrentUpdate,
    InsufficientStock,
    InvalidAmount,
    NotFound,
    Overpayment,
    StorageFailure,
)

logger = logging.getLogger(__name__)

STATUS_CODES = [
    (NotFound, 404),
    (Overpayment, 409),
    (ConcurrentUpdate, 409),
    (InsufficientStock, 400),
    (InvalidAmount, 400),
    (StorageFailure, 500),
]


def to_http_error(error: Exception) -> HTTPException:
    status_code = 400
    for error_cls, code in STATUS_CODES:
        if isinstance(error, error_cls):
            status_code = code
            break

    detail = {
        "code": getattr(error, "code", "invalid_request"),
        "message": str(error),
    }
    if isinstance(error, InsufficientStock):
        detail["lines"] = error.lines
    item_index = getattr(error, "item_index", None)
    if item_index is not None:
        detail["item_index"] = item_index

    if status_code >= 500:
        logger.error("Request failed: %s", error)
    return HTTPException(status_code=status_code, detail=detail)
