from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware import Middleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1.auth import router as auth_router
from api.v1.care import router as care_router
from api.v1.gardens import router as gardens_router
from api.v1.health import router as health_router
from api.v1.maintenance import router as maintenance_router
from api.v1.plants import router as plants_router
from api.v1.species import router as species_router
from api.v1.tools import router as tools_router
from api.v1.users import router as users_router
from api.v1.weather import router as weather_router
from core.config import settings
from core.exceptions import PlantCareError, RateLimitError
from core.logger import app_logger
from init_db import close_db, init_db
from services.geocoding import GeocodingClient
from services.plant_identifier import build_identifier
from services.weather import WeatherClient

middleware = [
    Middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
]

app = FastAPI(
    title="Garden Optimus API",
    middleware=middleware
)


@app.exception_handler(PlantCareError)
async def plant_care_error_handler(request: Request, exc: PlantCareError):
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": message, "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    app_logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
async def startup():
    await init_db()

    timeout = settings.HTTP_TIMEOUT_SECONDS
    app.state.weather_client = WeatherClient(settings.WEATHER_API_URL, timeout)
    app.state.geocoder = GeocodingClient(settings.GEOCODING_API_URL, settings.GEOCODING_USER_AGENT, timeout)
    app.state.identifier = build_identifier(settings)

    if app.state.identifier is None:
        app_logger.warning("OPENAI_API_KEY is not set; AI features are disabled")
    app_logger.info("Garden Optimus API started")


@app.on_event("shutdown")
async def shutdown():
    await close_db()


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(gardens_router)
app.include_router(plants_router)
app.include_router(care_router)
app.include_router(weather_router)
app.include_router(tools_router)
app.include_router(species_router)
app.include_router(maintenance_router)
app.include_router(health_router)
