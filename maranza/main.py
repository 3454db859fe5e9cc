import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from maranza.api.routes import router
from maranza.assets.catalog import init_assets

APP_NAME = "maranza-simulator"
APP_VERSION = "0.1.0"

# Configure logging
logging.basicConfig(
    level=os.environ.get("MARANZA_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME, version=APP_VERSION)
app.include_router(router)


@app.exception_handler(RequestValidationError)
async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


@app.on_event("startup")
async def _startup() -> None:
    init_assets()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": APP_NAME, "version": APP_VERSION}
