# src/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from src.common.database.database import connect_to_db, close_db_connection
from src.common.config import settings
from src.common.utils.exceptions import register_exception_handlers
from src.common.utils.logger import setup_logging
from src.router.routers import include_routers

setup_logging()


# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_db()
    yield
    await close_db_connection()

# Initialize FastAPI app with lifespan manager
app = FastAPI(
    title=f"{settings.CLINIC_NAME} API",
    description="Patient, package, session and payment management for a physiotherapy clinic",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware for CORS using allowed origins from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers from a separate file
include_routers(app)

# Root endpoint
@app.get("/", response_class=HTMLResponse)
async def root():
    html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{settings.CLINIC_NAME} API</title>
    <style>
        body {{
            font-family: system-ui, -apple-system, sans-serif;
            line-height: 1.6;
            max-width: 640px;
            margin: 4rem auto;
            padding: 0 1rem;
            color: #1f2937;
        }}
        a {{ color: #0f766e; }}
    </style>
</head>
<body>
    <h1>{settings.CLINIC_NAME} API</h1>
    <p>Patients, treatment packages, attended sessions and payments.</p>
    <p>
        <a href="/docs">Swagger UI</a> &middot;
        <a href="/redoc">ReDoc</a>
    </p>
</body>
</html>
"""
    return html_content
