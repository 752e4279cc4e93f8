from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from config.settings import Settings, get_settings
from ecoshield.tools.search import SearchTool, build_search_tool


logger = logging.getLogger("ecoshield")

QUERY_REQUIRED = {"error": "Query parameter is required"}
SEARCH_FAILED = {"error": "An error occurred during the search"}


class SearchRequest(BaseModel):
    query: Optional[str] = Field(None, description="Free-text query forwarded to the search tool")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="[%(asctime)s] %(levelname)s - %(message)s",
    )


def _get_search_tool(request: Request) -> SearchTool:
    state = request.app.state
    if state.search_tool is None:
        state.search_tool = build_search_tool(state.settings)
    return state.search_tool


def create_app(settings: Optional[Settings] = None, search_tool: Optional[SearchTool] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    app = FastAPI(title="EcoShield Search Proxy", version="1.0.0")
    app.state.settings = settings
    app.state.search_tool = search_tool

    # CORS: origins from CORS_ALLOW_ORIGINS; credentials only for an explicit list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.cors_is_wildcard else settings.cors_allow_origins,
        allow_credentials=not settings.cors_is_wildcard,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Unreadable bodies (bad JSON, not an object, non-string query) get the same 400
    @app.exception_handler(RequestValidationError)
    async def search_body_error(request: Request, exc: RequestValidationError):
        if request.url.path != "/search":
            return await request_validation_exception_handler(request, exc)
        logger.warning("Rejected search body: %s", exc.errors())
        return JSONResponse(status_code=400, content=QUERY_REQUIRED)

    @app.post("/search")
    def search(request: Request, req: Optional[SearchRequest] = None) -> JSONResponse:
        query = req.query if req is not None else None
        if not query or not query.strip():
            return JSONResponse(status_code=400, content=QUERY_REQUIRED)

        try:
            tool = _get_search_tool(request)
            results = tool.invoke(query)
            response = JSONResponse(content={"results": jsonable_encoder(results)})
        except Exception as e:
            logger.exception("Search error for query=%r: %s", query, e)
            return JSONResponse(status_code=500, content=SEARCH_FAILED)

        logger.info(
            "Search served: query_len=%s result_len=%s",
            len(query),
            len(results) if isinstance(results, (str, list)) else "n/a",
        )
        return response

    @app.get("/", response_class=PlainTextResponse)
    def index() -> str:
        return "EcoShield search proxy is running! Send POST requests to /search"

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    proxy = create_app(settings)
    logger.info("Starting search proxy on port %s (origins=%s)", settings.port, settings.cors_allow_origins)
    uvicorn.run(proxy, host="0.0.0.0", port=settings.port)


app = create_app()


if __name__ == "__main__":
    main()
