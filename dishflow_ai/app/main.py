import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from dishflow_ai.app.api.routes import api_router
from dishflow_ai.app.core.config import get_settings
from dishflow_ai.app.core.errors import DishflowError, IrrelevantContentError
from dishflow_ai.app.services.llm_client import create_genai_client
from dishflow_ai.app.services.url_parsing.html_fetcher import create_safe_http_client

logger = logging.getLogger(__name__)


async def validation_exception_handler(request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", []) if part is not None)
        msg = err.get("msg", "Invalid value")
        details.append({"field": loc or None, "message": msg})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "validation_error",
            "message": "Invalid request payload.",
            "details": details,
        },
    )


async def dishflow_exception_handler(request, exc: DishflowError):
    content = {"error_code": exc.error_code, "message": exc.message}
    if isinstance(exc, IrrelevantContentError):
        content["reason"] = exc.reason
    if exc.status_code >= 500:
        logger.error("Request failed with %s: %s", exc.error_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="DishFlow AI", version="0.1.0")
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DishflowError, dishflow_exception_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.on_event("startup")
    async def startup_event() -> None:
        app.state.http_client = create_safe_http_client(settings)
        if settings.gemini_api_key:
            app.state.genai_client = create_genai_client(settings)
            logger.info("Gemini client initialized (model=%s)", settings.gemini_model)
        else:
            app.state.genai_client = None
            logger.warning("GEMINI_API_KEY not set; AI endpoints will return 503")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        http_client = getattr(app.state, "http_client", None)
        if http_client is not None:
            await http_client.aclose()

    return app


app = create_app()
