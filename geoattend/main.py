import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from geoattend.core.config import settings
from geoattend.core.errors import BackendError, FunctionError
from geoattend.api import admin as admin_api
from geoattend.api import attendance as attendance_api
from geoattend.api import functions as functions_api
from geoattend.api import leaves as leaves_api

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
CLOCK_PATH = f"{functions_api.router.prefix}/clock-attendance"

# Disable API docs in production
docs_url = "/docs" if settings.ENVIRONMENT != "production" else None
redoc_url = "/redoc" if settings.ENVIRONMENT != "production" else None

app = FastAPI(
    title=settings.APP_NAME,
    description="GeoAttend - GPS attendance backend",
    version="1.0.0",
    docs_url=docs_url,
    redoc_url=redoc_url,
)


# Error handlers - always return JSON {"error": ...}
@app.exception_handler(FunctionError)
async def function_error_handler(request: Request, exc: FunctionError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    logger.error("Backend call failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
    content = {"error": "Internal server error"}
    headers = None
    # Runs outside function_cors, so function paths get their headers here
    if request.url.path.startswith(functions_api.router.prefix):
        headers = CORS_HEADERS
        if request.url.path == CLOCK_PATH:
            content["code"] = "INTERNAL_ERROR"
    return JSONResponse(status_code=500, content=content, headers=headers)


@app.middleware("http")
async def function_cors(request: Request, call_next):
    """Function endpoints answer any origin, including bare OPTIONS preflights."""
    if not request.url.path.startswith(functions_api.router.prefix):
        return await call_next(request)
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "geoattend-api", "version": "1.0.0"}


@app.get("/")
def root():
    return {"message": "GeoAttend API", "version": "1.0.0", "docs": docs_url}


# Include routers
app.include_router(functions_api.router)
app.include_router(attendance_api.router)
app.include_router(leaves_api.router)
app.include_router(admin_api.router)
