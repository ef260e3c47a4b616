from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
from storefront.version import VERSION
from storefront.api import (
    auth, users, categories, brands, products, coupons, reviews,
    wishlist, addresses, cart, orders, webhooks,
)
from storefront.core.errors import register_exception_handlers
from storefront.core.logging import get_logger
from storefront.events.producer import close_producer

logger = get_logger(__name__)

def create_app() -> FastAPI:
    app = FastAPI(title='Storefront API', version=VERSION)

    # Instrument the app BEFORE adding routes or middleware
    Instrumentator().instrument(app).expose(
        app,
        include_in_schema=False,
        endpoint="/metrics",
        should_gzip=True,
    )

    @app.get('/health')
    def health(): return {'status': 'ok'}

    @app.get('/v1/_info')
    def info(): return {'service': 'storefront', 'version': VERSION}

    @app.on_event("startup")
    async def startup_event():
        for route in app.routes:
            if hasattr(route, "methods") and hasattr(route, "path"):
                logger.debug("%s %s", sorted(route.methods), route.path)

    @app.on_event("shutdown")
    def shutdown_event():
        close_producer()

    register_exception_handlers(app)

    # mounted outside /api/v1, the payment provider posts here with a raw body
    app.include_router(webhooks.router, tags=['webhook'])
    app.include_router(auth.router, prefix='/api/v1/auth', tags=['auth'])
    app.include_router(users.router, prefix='/api/v1/users', tags=['users'])
    app.include_router(categories.router, prefix='/api/v1/categories', tags=['categories'])
    app.include_router(brands.router, prefix='/api/v1/brands', tags=['brands'])
    app.include_router(products.router, prefix='/api/v1/products', tags=['products'])
    app.include_router(coupons.router, prefix='/api/v1/coupons', tags=['coupons'])
    app.include_router(reviews.router, prefix='/api/v1/reviews', tags=['reviews'])
    app.include_router(wishlist.router, prefix='/api/v1/wishlist', tags=['wishlist'])
    app.include_router(addresses.router, prefix='/api/v1/addresses', tags=['addresses'])
    app.include_router(cart.router, prefix='/api/v1/carts', tags=['cart'])
    app.include_router(orders.router, prefix='/api/v1/orders', tags=['orders'])
    return app

app = create_app()
