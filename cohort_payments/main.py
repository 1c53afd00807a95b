import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cohort_payments.api.v1.fee_structures.router import router as fee_structures_router
from cohort_payments.api.v1.payments.router import router as payments_router
from cohort_payments.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Cohort Payments")

    # CORS: allow the dashboard frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(fee_structures_router)
    app.include_router(payments_router)

    return app


app = create_app()
