"""
Cart Service Application

Authoritative store for guest and account carts. Guest carts are addressed
by an opaque session token, account carts by a bearer credential, and a
guest cart can be merged into an account cart after login.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import products_router, cart_router

# Load environment variables
load_dotenv(os.getenv("CART_SERVICE_ENV_FILE", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("CART_SERVICE_DEBUG") else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Cart Service starting up...")
    if not os.getenv("CART_JWT_SECRET"):
        logger.warning("CART_JWT_SECRET not set - using the development secret")
    yield
    logger.info("Cart Service shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Cart Service",
    description="Guest and account carts with login-time merge",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(products_router)
app.include_router(cart_router)


@app.get("/")
async def home():
    """Service index"""
    return {
        "message": "Cart Service API",
        "docs": "/docs",
        "endpoints": {
            "products": "/api/products/{product_id}",
            "cart": "/api/cart",
            "merge": "/api/cart/merge",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "cart-service"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cart_service.main:app",
        host="0.0.0.0",
        port=8001,
        reload=True,
    )
