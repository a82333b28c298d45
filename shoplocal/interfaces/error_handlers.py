import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from shoplocal.core.errors import InternalError, ShopLocalError

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    # ("body", "items", 0, "productId") -> "items.0.productId"
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ShopLocalError)
    async def shoplocal_error_handler(request: Request, exc: ShopLocalError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=jsonable_encoder({"message": "Invalid request data", "errors": errors}),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"❌ DB Error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=InternalError().to_dict())
