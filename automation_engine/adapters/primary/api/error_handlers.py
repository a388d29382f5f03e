from fastapi import Request, status
from fastapi.responses import JSONResponse

from automation_engine.domain.workflow.exceptions import WorkflowException
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)

CONFLICT_CODES = {"INVALID_STATUS_TRANSITION", "WORKFLOW_NOT_ACTIVE"}
UNPROCESSABLE_CODES = {
    "WORKFLOW_VALIDATION_FAILED",
    "CYCLIC_DEPENDENCY",
    "INVALID_NODE_REFERENCE",
    "DUPLICATE_NODE_ID",
}


def status_for(error_code: str) -> int:
    if error_code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if error_code in UNPROCESSABLE_CODES:
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if error_code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


async def workflow_exception_handler(request: Request, exc: WorkflowException):
    """
    Global exception handler for WorkflowException and its subclasses.
    Converts domain exceptions to structured JSON responses.
    """
    logger.warning(
        "workflow_error",
        error_code=exc.error_code,
        message=exc.message,
        context=exc.context,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status_for(exc.error_code),
        content={
            "error": {
                "message": exc.message,
                "error_code": exc.error_code,
                "context": exc.context,
            }
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Fallback handler for all unhandled exceptions.
    """
    logger.exception("unhandled_exception", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "message": "Internal processing error",
                "error_code": "INTERNAL_SERVER_ERROR",
                "context": {"type": str(type(exc).__name__)},
            }
        },
    )
