"""
Storefront Checkout Service

Composes priced orders from storefront carts and settles coupons, wallet
balance and payment-gateway orders against them.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from .core.config import settings
from .routes import checkout_router, cart_router, reconciliation_router
from .routes import checkout as checkout_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Checkout service starting up...")
    logger.info(f"Payment gateway: {'configured' if settings.gateway_configured else 'not configured'}")
    logger.info(f"Bearer auth: {'enabled' if settings.auth_jwt_secret else 'disabled (no secret)'}")
    logger.info(
        f"Shipping: free from {settings.free_shipping_threshold:.2f} {settings.currency}, "
        f"otherwise {settings.shipping_flat_fee:.2f}"
    )

    yield

    logger.info("Checkout service shutting down...")
    if checkout_routes.gateway_client:
        await checkout_routes.gateway_client.close()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Checkout order composition and settlement for the storefront",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(checkout_router)
app.include_router(cart_router)
app.include_router(reconciliation_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "checkout",
        "gateway_configured": settings.gateway_configured,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "checkout_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
