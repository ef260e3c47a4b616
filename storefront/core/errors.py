from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(StorefrontError):
    status_code = 404


class ConflictError(StorefrontError):
    status_code = 409


class CheckoutConflictError(ConflictError):
    """The cart was converted into an order by a concurrent checkout."""


class EmptyCartError(StorefrontError):
    status_code = 400


class PaymentEventError(StorefrontError):
    status_code = 400


class PaymentProviderError(StorefrontError):
    status_code = 502


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(StorefrontError)
    async def _storefront_error(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
