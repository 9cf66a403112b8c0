from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from core.config import settings
from core.logging_config import configure_logging
from db.database import create_db_and_tables
from routers.dashboard import router as dashboard_router
from routers.inventory import router as inventory_router
from routers.orders import router as sales_orders_router
from routers.production import router as production_router
from routers.recipes import router as recipes_router
from routers.units import router as units_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Bakery MRP API",
    description="Recipes, inventory, production and sales orders for a small bakery",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
app.include_router(units_router, prefix="/units", tags=["units"])

# Catalog and stock
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(recipes_router, prefix="/recipes", tags=["recipes"])

# Stock-moving workflows
app.include_router(production_router, prefix="/production", tags=["production"])
app.include_router(sales_orders_router, prefix="/sales-orders", tags=["sales-orders"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
