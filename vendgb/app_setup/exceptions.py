"""
Gestionnaires d'exceptions.
- Une famille d'erreurs métier (vendgb.errors) -> un handler -> un code HTTP.
- PaymentDeclined: corps {success: false, status, detail} exploité par l'app mobile.
- Erreurs de validation de requête FastAPI: 400 (et non 422) pour un contrat d'erreur unique.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vendgb.errors import PaymentDeclined, PersistenceError, VendError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PaymentDeclined)
    async def payment_declined(request: Request, exc: PaymentDeclined):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "status": exc.status,
                "detail": exc.detail,
                "paymentIntentId": exc.payment_intent_id,
            },
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError):
        logger.error("persistence failure %s %s: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(VendError)
    async def vend_error(request: Request, exc: VendError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )
