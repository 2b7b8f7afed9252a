# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from config import settings
from database import init_db
from utils.errors import register_exception_handlers

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Import routerów
from routes.orders import router as orders_router
from routes.inventory import router as inventory_router
from routes.products import router as products_router
from routes.categories import router as categories_router


# Schema is created on startup; migrations live in alembic/
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("UMI Store API started")
    yield


app = FastAPI(title="UMI Store API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Rejestracja routerów
app.include_router(orders_router)
app.include_router(inventory_router)
app.include_router(products_router)
app.include_router(categories_router)

@app.get("/")
def read_root():
    return {"message": "UMI Store API is running"}
