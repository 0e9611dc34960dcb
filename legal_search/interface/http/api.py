"""HTTP API for legal search: search, Q&A, synthesis and discovery facets.

Why: Consumable API without business logic; pure delegation to use cases.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from legal_search.application.dto.search_dto import QAQuery
from legal_search.application.ports import Principal
from legal_search.config.compose import Container, build_container
from legal_search.config.logging import configure_logging
from legal_search.config.settings import AppSettings
from legal_search.domain.errors import (
    AuthenticationError,
    DomainError,
    EmbeddingError,
    IndexUnavailable,
    ValidationError,
)
from legal_search.domain.models import Filters, SearchQuery
from legal_search.domain.types import Result
from legal_search.interface.http.schemas import (
    DiscoveryModel,
    QARequestModel,
    QAResponseModel,
    SearchRequestModel,
    SearchResponseModel,
    SynthesisResponseModel,
)

logger = structlog.get_logger(__name__)

RETRY_AFTER_S = "5"
WARMUP_QUERY = "warmup"
_bearer = HTTPBearer(auto_error=False)


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app.

    Without a container one is built from the environment at startup, and
    logging is configured from the same settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "container", None) is None:
            settings = AppSettings()
            configure_logging(settings.log_level, settings.log_json)
            app.state.container = build_container(settings)
        owned: Container = app.state.container
        # load the embedding model before serving, outside any request timeout
        await asyncio.to_thread(owned.get_embedding().embed_query, WARMUP_QUERY)
        # warm the facet cache without delaying startup
        owned.get_facet_cache().refresh()
        logger.info("legal search api started", backend=owned.settings.vector_backend)
        try:
            yield
        finally:
            await owned.aclose()

    app = FastAPI(title="Legal Search API", version="1.0.0", lifespan=lifespan)
    app.state.container = container
    _install_error_handlers(app)
    app.include_router(_routes())
    return app


def get_container(request: Request) -> Container:
    container: Container | None = request.app.state.container
    if container is None:
        raise IndexUnavailable("service not initialized")
    return container


def require_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    verifier = get_container(request).get_verifier()
    try:
        return verifier.verify(credentials.credentials if credentials else None)
    except AuthenticationError as ex:
        logger.info("authentication rejected", path=request.url.path, reason=str(ex))
        raise


def _routes() -> APIRouter:
    router = APIRouter()
    api = APIRouter(prefix="/api/v1", dependencies=[Depends(require_principal)])

    @api.post("/search", response_model=SearchResponseModel)
    async def search(
        req: SearchRequestModel, container: Container = Depends(get_container)
    ) -> JSONResponse:
        """Hybrid (dense + sparse, RRF-fused) search over decision chunks.

        Example:
            POST /api/v1/search
            {"query_text": "فسخ عقد الإيجار", "limit": 10, "filters": {"city": "الرياض"}}
        """
        resp = _unwrap(await container.get_search_use_case().execute(_search_query(req)))
        return JSONResponse(SearchResponseModel.from_dto(resp).to_body())

    @api.post("/search/qa", response_model=QAResponseModel)
    async def search_qa(
        req: QARequestModel, container: Container = Depends(get_container)
    ) -> JSONResponse:
        """Semantic matching against the Q&A collection."""
        dto = QAQuery(
            question=req.question,
            filters=Filters.from_mapping(req.filters),
            limit=req.limit,
            score_threshold=req.score_threshold,
        )
        resp = _unwrap(await container.get_qa_use_case().execute(dto))
        return JSONResponse(QAResponseModel.from_dto(resp).to_body())

    @api.post("/search/synthesis", response_model=SynthesisResponseModel)
    async def search_synthesis(
        req: SearchRequestModel, container: Container = Depends(get_container)
    ) -> JSONResponse:
        """Search and aggregate the top results into grounding context.

        Backend failures come back as 200 with `error` set.
        """
        resp = _unwrap(await container.get_synthesis_use_case().execute(_search_query(req)))
        return JSONResponse(SynthesisResponseModel.from_dto(resp).to_body())

    @api.get("/discovery/all", response_model=DiscoveryModel)
    async def discovery_all(container: Container = Depends(get_container)) -> JSONResponse:
        """Facet values with counts; served from cache, at most FACET_TTL_S stale."""
        data = await container.get_facet_cache().get()
        return JSONResponse(DiscoveryModel.from_dto(data).to_body())

    @router.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "legal-search"}

    router.include_router(api)
    return router


def _search_query(req: SearchRequestModel) -> SearchQuery:
    return SearchQuery(
        query_text=req.query_text,
        limit=req.limit,
        filters=Filters.from_mapping(req.filters),
        use_hybrid=req.use_hybrid,
    )


def _unwrap(result: Result[Any, DomainError]) -> Any:
    if not result.ok:
        assert result.error is not None
        raise result.error
    return result.value


# ===== Error mapping =====


def _error_type(ex: Exception) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(ex).__name__).lower()


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def on_validation(request: Request, ex: ValidationError) -> JSONResponse:
        loc = ["body", *(ex.field.split(".") if ex.field else [])]
        return JSONResponse(
            status_code=422,
            content={"detail": [{"loc": loc, "msg": str(ex), "type": _error_type(ex)}]},
        )

    @app.exception_handler(AuthenticationError)
    async def on_auth(request: Request, ex: AuthenticationError) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"error": "Unauthorized"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(IndexUnavailable)
    @app.exception_handler(EmbeddingError)
    async def on_unavailable(request: Request, ex: DomainError) -> JSONResponse:
        logger.warning(
            "backend unavailable",
            path=request.url.path,
            error_type=type(ex).__name__,
            error=str(ex),
        )
        return JSONResponse(
            status_code=503,
            content={"detail": "Search backend unavailable, retry later"},
            headers={"Retry-After": RETRY_AFTER_S},
        )

    @app.exception_handler(DomainError)
    async def on_domain(request: Request, ex: DomainError) -> JSONResponse:
        logger.error("unhandled domain error", path=request.url.path, error=str(ex))
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.middleware("http")
    async def internal_errors(request: Request, call_next: Any) -> Any:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("request failed", path=request.url.path)
            return JSONResponse(status_code=500, content={"error": "Internal server error"})


app = create_app()
