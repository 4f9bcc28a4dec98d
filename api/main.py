"""
Discern - FastAPI Application

HTTP surface for the discernment engine:

- ``POST /api/lyrics/analyze``: fetch (or accept) song lyrics and score them
- ``POST /api/text/analyze``: score free text such as a synopsis
- ``POST /api/analyze``: generative analysis for movies, shows and books
- ``GET /api/scripture/{reference}``: single verse lookup
- ``GET /health``

Input validation happens here, before the engine is invoked; empty titles
or text are rejected with 400.
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.trace import SpanKind
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import Config, get_config
from core.cache import LRUCache
from core.errors import DiscernError, DiscernValidationError, classify_error
from discernment.engine import MODE_LYRICS, MODE_TEXT, DiscernmentEngine
from integrations.lyrics import LyricsProvider, LyricsResult, ManualProvider, build_lyrics_provider
from integrations.media_analysis import MediaAnalyzer
from observability import create_span, get_logger, setup_observability, shutdown_observability
from observability.logging import LogContext, bind_context, clear_context

logger = get_logger("discern.api")

API_VERSION = "1.0.0"
LYRICS_CACHE_SIZE = 500
LYRICS_CACHE_TTL_SECONDS = 90 * 24 * 60 * 60
LYRICS_UNAVAILABLE_MESSAGE = "Lyrics not available. You can paste lyrics manually for analysis."


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class LyricsAnalyzeRequest(_RequestModel):
    """Song to analyze; lyrics are fetched when ``rawLyrics`` is absent."""
    title: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1)
    raw_lyrics: Optional[str] = Field(default=None, description="User-pasted lyrics")
    translation: Optional[str] = Field(default=None, description="Bible translation code")


class TextAnalyzeRequest(_RequestModel):
    text: str = Field(..., min_length=1)
    title: Optional[str] = None
    translation: Optional[str] = None


class MediaAnalyzeRequest(_RequestModel):
    title: str = Field(..., min_length=1)
    media_type: str = Field(default="movie", description="movie, tv or book")
    release_year: Optional[str] = None
    overview: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    components: Dict[str, str]
    trace_id: Optional[str] = None


def get_current_trace_id() -> Optional[str]:
    """Get current trace ID as hex string."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            return format(ctx.trace_id, "032x")
    return None


def lyrics_cache_key(artist: str, title: str) -> str:
    return f"{' '.join(artist.lower().split())}::{' '.join(title.lower().split())}"


def get_engine(request: Request) -> DiscernmentEngine:
    return request.app.state.engine


def get_lyrics_provider(request: Request) -> LyricsProvider:
    return request.app.state.lyrics_provider


def get_lyrics_cache(request: Request) -> LRUCache[LyricsResult]:
    return request.app.state.lyrics_cache


def get_media_analyzer(request: Request) -> MediaAnalyzer:
    return request.app.state.media_analyzer


def create_app(
    config: Optional[Config] = None,
    *,
    engine: Optional[DiscernmentEngine] = None,
    lyrics_provider: Optional[LyricsProvider] = None,
    media_analyzer: Optional[MediaAnalyzer] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Collaborators not passed in are built from ``config`` during startup.
    Startup fails if the rule table cannot be loaded.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_observability(service_name="discern-api", log_level="DEBUG" if config.debug else None)
        logger.info("Starting Discern API", event="startup", env=config.env.value)

        with create_span("startup.engine"):
            app.state.engine = engine or DiscernmentEngine.from_config(config)
        app.state.lyrics_provider = lyrics_provider or build_lyrics_provider(config.lyrics)
        app.state.media_analyzer = media_analyzer or MediaAnalyzer(config.llm)
        app.state.lyrics_cache = LRUCache(
            max_size=LYRICS_CACHE_SIZE,
            ttl_seconds=LYRICS_CACHE_TTL_SECONDS,
        )
        app.state.config = config

        yield

        logger.info("Shutting down Discern API", event="shutdown")
        await app.state.engine.aclose()
        await app.state.lyrics_provider.aclose()
        await app.state.media_analyzer.aclose()
        shutdown_observability()

    app = FastAPI(
        title="Discern API",
        description="Christian discernment scores for lyrics and media",
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    _register_middleware(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_errors(exc.errors())},
        )

    @app.exception_handler(DiscernValidationError)
    async def discern_validation_handler(request: Request, exc: DiscernValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "error_code": exc.error_code,
                "message": exc.message,
                "suggestions": exc.suggestions,
            },
        )

    @app.exception_handler(DiscernError)
    async def discern_error_handler(request: Request, exc: DiscernError):
        logger.error("Request failed", **exc.to_dict())
        return JSONResponse(
            status_code=500,
            content={"error": "Internal error", "error_code": exc.error_code, "message": exc.message},
        )


def jsonable_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validation errors without the raw ``ctx``/``input`` payloads."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in errors
    ]


def _register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def observability_middleware(request: Request, call_next):
        """Add request tracking with trace context."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        start_time = time.perf_counter()

        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response: Response = await call_next(request)
            duration = time.perf_counter() - start_time

            trace_id = get_current_trace_id()
            if trace_id:
                response.headers["X-Trace-ID"] = trace_id
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration * 1000:.2f}ms"

            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=duration * 1000,
            )
            return response
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error("Request failed", error=str(e), duration_ms=duration * 1000)
            raise
        finally:
            clear_context()


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Report engine and collaborator status."""
        state = request.app.state
        config: Config = state.config
        with create_span("health_check", attributes={"endpoint": "/health"}) as span:
            components = {
                "rules": f"loaded ({len(state.engine.rules)})",
                "openai": "configured" if config.llm.enabled else "unconfigured",
                "lyrics_provider": state.lyrics_provider.name,
            }
            span.set_attribute("health.status", "ok")
            return HealthResponse(
                status="ok",
                version=API_VERSION,
                components=components,
                trace_id=get_current_trace_id(),
            )

    @app.post("/api/lyrics/analyze")
    async def analyze_lyrics(
        body: LyricsAnalyzeRequest,
        engine: DiscernmentEngine = Depends(get_engine),
        provider: LyricsProvider = Depends(get_lyrics_provider),
        cache: LRUCache[LyricsResult] = Depends(get_lyrics_cache),
    ):
        meta = {"title": body.title, "artist": body.artist}
        key = lyrics_cache_key(body.artist, body.title)

        with LogContext(operation="lyrics_analysis"):
            if body.raw_lyrics:
                found: Optional[LyricsResult] = ManualProvider().create_result(
                    body.raw_lyrics, artist=body.artist, title=body.title
                )
                cache.put(key, found)
            else:
                found = cache.get(key)
                if found is not None:
                    found = LyricsResult(
                        lyrics=found.lyrics,
                        provider=found.provider,
                        cached=True,
                        track_meta=found.track_meta,
                    )
                else:
                    with create_span("lyrics.fetch", kind=SpanKind.CLIENT,
                                     attributes={"lyrics.provider": provider.name}):
                        found = await provider.search(body.artist, body.title)
                    if found is not None:
                        cache.put(key, found)

            if found is None or not found.lyrics.strip():
                logger.info("Lyrics not available", provider=provider.name)
                return {
                    "meta": meta,
                    "lyricsAvailable": False,
                    "message": LYRICS_UNAVAILABLE_MESSAGE,
                }

            try:
                result = await engine.analyze_text(
                    found.lyrics, meta, mode=MODE_LYRICS, translation=body.translation
                )
            except DiscernError:
                raise
            except Exception as e:
                raise classify_error(e) from e

        return {
            "meta": meta,
            "lyricsAvailable": True,
            "provider": found.provider,
            "cached": found.cached,
            "analysis": {
                "signals": result.signals.to_dict(),
                "score": result.score.to_dict(),
                "verses": {ref: v.to_dict() for ref, v in result.verses.items()},
            },
        }

    @app.post("/api/text/analyze")
    async def analyze_text(
        body: TextAnalyzeRequest,
        engine: DiscernmentEngine = Depends(get_engine),
    ):
        meta = {"title": body.title} if body.title else {}
        result = await engine.analyze_text(
            body.text, meta, mode=MODE_TEXT, translation=body.translation
        )
        return result.to_dict()

    @app.post("/api/analyze")
    async def analyze_media(
        body: MediaAnalyzeRequest,
        analyzer: MediaAnalyzer = Depends(get_media_analyzer),
    ):
        analysis = await analyzer.analyze(
            body.title,
            media_type=body.media_type,
            release_year=body.release_year,
            overview=body.overview,
        )
        return {
            "title": body.title,
            "mediaType": body.media_type,
            **analysis.to_dict(),
        }

    @app.get("/api/scripture/{reference}")
    async def get_scripture(
        reference: str,
        translation: Optional[str] = None,
        engine: DiscernmentEngine = Depends(get_engine),
    ):
        if not reference.strip():
            raise DiscernValidationError("Reference is required", field_name="reference")
        verse = await engine.resolver.get_verse(reference, translation)
        return {**verse.to_dict(), "resolved": verse.resolved}


app = create_app()


def run_server():
    """Run the API server."""
    import uvicorn

    config = get_config()
    logger.info("Starting uvicorn server", host=config.api.host, port=config.api.port)
    uvicorn.run(
        "api.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.reload,
    )


if __name__ == "__main__":
    run_server()
