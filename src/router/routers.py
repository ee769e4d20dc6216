# src/router/routers.py

from fastapi import FastAPI
from src.auth.auth_controller import router as auth_router
from src.modules.patients.patients_controller import router as patients_router
from src.modules.doctors.doctors_controller import router as doctors_router
from src.modules.packages.packages_controller import router as packages_router
from src.modules.sessions.sessions_controller import router as sessions_router
from src.modules.payments.payments_controller import router as payments_router
from src.modules.reports.reports_controller import router as reports_router

def include_routers(app: FastAPI) -> None:
    """Include all API routers in the FastAPI application."""
    app.include_router(auth_router)
    app.include_router(patients_router)
    app.include_router(doctors_router)
    app.include_router(packages_router)
    app.include_router(sessions_router)
    app.include_router(payments_router)
    app.include_router(reports_router)
