"""FastAPI application."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.filters import router as filters_router
from src.config import settings

logging.basicConfig(level=settings.log_level)

DESCRIPTION = """
## PC Shop Catalog Filters API

Faceted filtering for the configurable PC hardware storefront.

### Features

* **Baseline facets** - Price range, brands and characteristic axes of a
  category, cached in Redis
* **Narrowed facets** - Live counts for a partial selection (price, brands,
  characteristic values), always recomputed
* **Composite values** - A value such as `DDR4, DDR5` counts toward each token
* **Stable axes** - A characteristic axis stays visible while the category
  defines it, even when every option count drops to zero
* **Product listing** - Price-sorted, paginated products for the same selection
"""

app = FastAPI(
    title="PC Shop Catalog Filters API",
    description=DESCRIPTION,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "filters",
            "description": "Category filter axes, live option counts and listings",
        },
    ],
    license_info={
        "name": "MIT",
    },
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(filters_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
