import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogapi import __version__
from blogapi.api.api import api_router
from blogapi.config import settings
from blogapi.database import Base, engine, get_db
from blogapi.exceptions import BlogAPIError
from blogapi.middleware import add_request_id_header, authenticate_request
from blogapi.schemas import ApiResponse

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.PROJECT_NAME} is starting up ({settings.ENVIRONMENT})")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application is shutting down")


app = FastAPI(title=settings.PROJECT_NAME, version=__version__, lifespan=lifespan)

# The last middleware registered runs first
app.middleware("http")(authenticate_request)
app.middleware("http")(add_request_id_header)

app.include_router(api_router, prefix="/api")


def _envelope(status_code: int, message: str, code: str, details=None) -> JSONResponse:
    body = ApiResponse.fail(message, code, details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(BlogAPIError)
async def blog_api_exception_handler(request: Request, exc: BlogAPIError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return _envelope(exc.status_code, exc.message, exc.error_code, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return _envelope(400, "Validation failed", "VALIDATION_FAILED", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        logger.warning(f"404 error for path: {request.url.path}")
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return _envelope(exc.status_code, str(exc.detail), code)


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity violation on {request.url.path}: {exc.orig}")
    return _envelope(409, "Request conflicts with existing data", "DATA_INTEGRITY_VIOLATION")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _envelope(500, "An unexpected error occurred", "INTERNAL_ERROR")


@app.get("/health", tags=["health"])
def health_check(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return ApiResponse.ok({"status": "UP", "version": __version__})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("blogapi.main:app", host="0.0.0.0", port=8000, reload=settings.ENVIRONMENT == "development")
