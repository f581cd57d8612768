import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.db import Base, engine
from app.core.errors import OtpAuthError
from app.domains.otp import models  # noqa: F401  (registers the otps table)
from app.domains.otp.router import router as otp_router
from app.utils.mailer import smtp_missing_fields
from app.utils.telegram import telegram_missing_fields

logger = logging.getLogger(__name__)


app = FastAPI(title=settings.app_name)


@app.exception_handler(OtpAuthError)
async def _otp_auth_error_handler(request: Request, exc: OtpAuthError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors like missing fields: 400, not FastAPI's 422.
    if settings.env == "dev":
        logger.info("[400] path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "detail": jsonable_encoder(exc.errors())},
    )


origins = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins else ["*"],
    allow_credentials=bool(origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    Base.metadata.create_all(bind=engine)
    logger.info("otp store ready at %s", engine.url.render_as_string(hide_password=True))


@app.get("/health")
def health() -> dict:
    return {
        "ok": True,
        "service": settings.app_name,
        "env": settings.env,
        "email_confirmation": bool(settings.email_confirmation),
        "telegram_missing": telegram_missing_fields(settings),
        "smtp_missing": smtp_missing_fields(settings),
    }


app.include_router(otp_router, tags=["otp"])


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
