# spincart/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from spincart.api.routers import carts, health, orders, spins
from spincart.domain.errors import IntegrityFault, ShopError
from spincart.utils.logging import get_logger

logger = get_logger(__name__)


async def shop_error_handler(request: Request, exc: ShopError):
    if isinstance(exc, IntegrityFault):
        logger.error(
            f"Integrity fault on {request.method} {request.url.path}: {exc.message} {exc.context}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "kind": exc.kind, "message": "Internal server error"},
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "kind": exc.kind, "message": exc.message, **exc.context},
    )


def register(app: FastAPI) -> FastAPI:
    app.add_exception_handler(ShopError, shop_error_handler)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(spins.router)
    app.include_router(orders.router)
    return app
