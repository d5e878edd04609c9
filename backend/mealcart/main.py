from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealcart.api.routes import router as api_router
from mealcart.config import settings
from mealcart.errors import (
    InvalidStateTransition,
    PersistenceFailure,
    ShoppingError,
    UnknownReferenceError,
    ValidationFailure,
)
from mealcart.logging import configure_logging, get_logger
from mealcart.storage.db import create_db_and_tables

app = FastAPI(title="Mealcart API")
logger = get_logger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_CODES = {
    UnknownReferenceError: 404,
    InvalidStateTransition: 409,
    ValidationFailure: 400,
    PersistenceFailure: 503,
}


@app.exception_handler(ShoppingError)
async def handle_shopping_error(request: Request, exc: ShoppingError) -> JSONResponse:
    status_code = STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error("request.failed path=%s code=%s error=%s", request.url.path, exc.code, exc)
    else:
        logger.info("request.rejected path=%s code=%s error=%s", request.url.path, exc.code, exc)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    logger.info("startup: app=%s env=%s", settings.app_name, settings.env)
    create_db_and_tables()


app.include_router(api_router)
