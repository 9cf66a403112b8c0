from fastapi import Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder

from core.exceptions import (
    ConcurrentModification,
    ConversionError,
    InventoryError,
    NotFoundError,
    PersistenceError,
    ShortageError,
    ValidationError,
)
from services.ledger import Ledger, get_ledger
from services.workflows import InventoryWorkflows


def get_workflows(ledger: Ledger = Depends(get_ledger)) -> InventoryWorkflows:
    return InventoryWorkflows(ledger)


def http_error(exc: InventoryError) -> HTTPException:
    """Translate an engine error into the HTTPException the client sees."""
    detail = {"code": exc.code, "message": str(exc)}

    if isinstance(exc, ShortageError):
        detail.update(exc.report.to_dict())
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=jsonable_encoder(detail))
    if isinstance(exc, ConcurrentModification):
        detail["record_id"] = exc.record_id
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=jsonable_encoder(detail))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=jsonable_encoder(detail))
    if isinstance(exc, (ValidationError, ConversionError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=jsonable_encoder(detail))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=jsonable_encoder(detail))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=jsonable_encoder(detail))
