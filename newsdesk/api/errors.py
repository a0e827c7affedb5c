from fastapi import HTTPException

from newsdesk.components.errors import STATUS_FOR_KIND, OperationError


def error_detail(errors: list[OperationError]) -> list[dict[str, str | None]]:
    return [{"code": e.code, "message": e.message, "field": e.field} for e in errors]


def raise_for_errors(errors: list[OperationError]) -> None:
    """Raise an HTTPException for a failed operation; the first error picks the status."""
    if not errors:
        return
    raise HTTPException(status_code=STATUS_FOR_KIND[errors[0].kind], detail=error_detail(errors))
