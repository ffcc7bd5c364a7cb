import uvicorn
from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import sys

from excel_analytics import config
from excel_analytics.errors import AppError, ValidationError
from excel_analytics.routers import admin, ai, auth, health, upload

# Configure logging
handlers = [logging.StreamHandler()]
if config.LOG_FILE:
    handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=handlers,
)

# Get the root logger
logger = logging.getLogger()

# HTTP clients used by supabase are chatty at INFO
for noisy in ("httpx", "httpcore", "hpack", "supabase"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

# Create directories
os.makedirs(config.UPLOAD_DIR, exist_ok=True)

app = FastAPI(
    title="Excel Analytics API",
    description="API for uploading spreadsheets, parsing them into records and generating insights",
    version="1.0.0",
    openapi_tags=[
        {"name": "Authentication", "description": "Authentication operations"},
        {"name": "Excel Upload", "description": "Excel file upload operations"},
        {"name": "AI Insights", "description": "Descriptive insights over uploaded data"},
        {"name": "Admin", "description": "User and file management (admin only)"},
        {"name": "Health", "description": "Service health"},
    ],
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},  # Hide schemas section by default
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map the error taxonomy to {message, error} JSON bodies"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_type} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_type} on {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "error": exc.error_type},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies answer like any other ValidationError"""
    logger.info(f"Rejected body on {request.url.path}: {exc.errors()}")
    return await app_error_handler(request, ValidationError("Invalid data provided"))


# Create an API router to group all endpoints under /api
api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(upload.router)
api_router.include_router(ai.router)
api_router.include_router(admin.router)

# Add the API router to the main app
app.include_router(api_router)

original_openapi = app.openapi

# Endpoints reachable without a bearer token
PUBLIC_PATHS = {
    "/api/health",
    "/api/auth/login",
    "/api/auth/register",
    "/api/upload/simple",
    "/api/ai/analyze-simple",
}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    # Get the default OpenAPI schema
    openapi_schema = original_openapi()

    # Add security scheme for Bearer token
    openapi_schema["components"] = openapi_schema.get("components", {})
    openapi_schema["components"]["securitySchemes"] = {
        "Bearer": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter your bearer token in the format: **Bearer &lt;token&gt;**"
        }
    }

    for path, path_item in openapi_schema["paths"].items():
        if path in PUBLIC_PATHS:
            continue
        for operation in path_item.values():
            operation["security"] = [{"Bearer": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

# Override the openapi function
app.openapi = custom_openapi


# Root endpoint
@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "Excel Analytics API is running!",
        "docs": "/docs",
        "version": "1.0.0"
    }


def run():
    """Console entry point"""
    try:
        uvicorn.run("excel_analytics.main:app", host=config.HOST, port=config.PORT, reload=False)
    except KeyboardInterrupt:
        logger.info("Server shutdown initiated by user")
    except Exception as e:
        logger.error(f"Error running server: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    run()
