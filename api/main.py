"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y eventos.
"""
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rostersync.core.config import settings, get_cors_origins
from rostersync.core.events import startup_handler, shutdown_handler
from rostersync.api.v1.router import api_router
from rostersync.api.middlewares.error_handler import ErrorHandlerMiddleware
from rostersync.shared.exceptions.base import AppException


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Backend de versionado y sincronización de rosters de tripulación",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Configurar CORS
    cors_origins = get_cors_origins(settings.CORS_ORIGINS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    # Registrar eventos de inicio y cierre
    application.add_event_handler("startup", startup_handler(application))
    application.add_event_handler("shutdown", shutdown_handler(application))

    # Incluir routers de la API
    application.include_router(api_router, prefix="/api")

    # Manejador global de excepciones personalizadas
    @application.exception_handler(AppException)
    async def app_exception_handler(request, exc: AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response()
        )

    # Errores de forma del request con el mismo formato que el resto
    @application.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "VALIDATION_ERROR",
                "message": "Request inválido",
                "details": {
                    "errors": [
                        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
                        for error in exc.errors()
                    ]
                }
            }
        )

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check():
        """Endpoint para verificar el estado de la aplicación."""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT
        }

    return application


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    # Determinar la URL base de acceso
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    logger.info(f"Swagger UI: {base_url}/docs | Health: {base_url}/health")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
