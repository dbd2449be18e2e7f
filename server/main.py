from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from langchain_core.language_models.chat_models import BaseChatModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, settings as default_settings
from functions.exceptions import ConfigurationError, LLMRequestError
from functions.llm import get_llm, get_llm_response
from functions.logging_config import get_logger, setup_logging
from functions.middleware import BodySizeLimitMiddleware
from functions.util import (
    build_context, build_system_prompt, chunk_file_content, preview
)
from models.chat_models import ChatRequest, ChatResponse, ErrorResponse, HealthResponse

logger = get_logger("server")

MISSING_FIELDS_ERROR = "Missing fileContent or userQuestion in request body."
PROCESSING_ERROR = "An error occurred while processing the request."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: report the provider and where the client bundle comes from."""
    app_settings: Settings = app.state.settings
    logger.info(f"LLM provider: {app_settings.llm_provider} ({app_settings.model_name})")
    if not app_settings.llm_configured:
        logger.warning("GEMINI_API_KEY not set; /api/chat will fail until it is")
    logger.info(f"Serving static files from: {app_settings.client_build_path}")
    yield
    logger.info("Application shutdown complete.")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_chat_model(request: Request) -> BaseChatModel:
    """Build the chat model on first use and reuse it for later requests."""
    app_settings = get_settings(request)
    if not app_settings.llm_configured:
        raise ConfigurationError("GEMINI_API_KEY not set in environment.")
    if request.app.state.llm is None:
        try:
            request.app.state.llm = get_llm(app_settings)
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Could not initialise the {app_settings.llm_provider} model: {e}"
            ) from e
    return request.app.state.llm


def create_app(
    app_settings: Optional[Settings] = None,
    llm: Optional[BaseChatModel] = None,
) -> FastAPI:
    app_settings = app_settings or default_settings
    setup_logging(level=app_settings.log_level, log_file=app_settings.log_file)

    app = FastAPI(
        title="File Q&A Chat API",
        description="Answers questions about an uploaded text file using a hosted LLM.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.llm = llm

    # CORS stays outermost so 413s from the size guard carry CORS headers
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=app_settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_ERROR})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(LLMRequestError)
    async def llm_error_handler(request: Request, exc: LLMRequestError):
        logger.error(f"Server RAG Error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": PROCESSING_ERROR, "details": str(exc)},
        )

    # --- API Endpoints ---
    @app.post(
        "/api/chat",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def chat_with_file(
        request: ChatRequest,
        llm: BaseChatModel = Depends(get_chat_model),
        app_settings: Settings = Depends(get_settings),
    ):
        """Answer a question using only the supplied file content."""
        if not request.fileContent or not request.userQuestion:
            raise HTTPException(status_code=400, detail=MISSING_FIELDS_ERROR)

        chunks = chunk_file_content(request.fileContent, app_settings.max_chunk_size)
        logger.info(
            f"Question: {preview(request.userQuestion)} "
            f"({len(chunks)} chunks, {len(request.fileContent)} chars)"
        )
        system_prompt = build_system_prompt(build_context(chunks))
        answer = get_llm_response(llm, system_prompt, request.userQuestion)
        return ChatResponse(answer=answer)

    @app.get("/api/health", response_model=HealthResponse)
    def health(app_settings: Settings = Depends(get_settings)):
        return HealthResponse(
            status="ok",
            provider=app_settings.llm_provider,
            model=app_settings.model_name,
        )

    # --- Static File Serving (browser client) ---
    if app_settings.client_build_path.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=app_settings.client_build_path, html=True),
            name="client",
        )
    else:
        logger.warning(f"Client bundle not found at {app_settings.client_build_path}")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting API server on {default_settings.host}:{default_settings.port}")
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)
