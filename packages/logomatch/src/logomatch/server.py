"""FastAPI server for the browser review UI."""

from datetime import datetime, timezone
from pathlib import Path

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from logomatch.debounce import InteractiveSearch
from logomatch.exceptions import SelectionPersistError
from logomatch.matcher import Matcher
from logomatch.normalize import start_case
from logomatch.presentation import format_location, severity
from logomatch.selections import SelectionStore, positional_resolver

log = structlog.get_logger()


class SourceEntry(BaseModel):
    """A source file and how many names are selected for it."""

    key: str
    selected: int


class SearchResult(BaseModel):
    name: str
    value: str
    location: str
    score: float
    severity: str


class SearchResponseModel(BaseModel):
    status: str
    query: str
    results: list[SearchResult]


class SetSelectionRequest(BaseModel):
    names: list[str]


class SelectionResponse(BaseModel):
    key: str
    names: list[str]


class FixResponse(BaseModel):
    fixed: int
    dropped: int
    unchanged: int


def create_app(
    matcher: Matcher,
    store: SelectionStore,
    sources: list[str],
    sources_dir: str | Path | None = None,
    ui_dir: str | Path | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    ``sources`` is the current listing of source identifiers; it is also the
    listing that legacy positional keys are resolved against by /fix.
    """
    app = FastAPI(title="Logomatch Review UI")
    search = InteractiveSearch(matcher)
    listing = list(sources)
    known = set(listing)

    log.info("server_ready", sources=len(listing), catalog=len(matcher.index))

    def _persist_error(e: SelectionPersistError) -> HTTPException:
        return HTTPException(status_code=500, detail=str(e))

    def _require_source(key: str) -> None:
        if key not in known:
            raise HTTPException(status_code=404, detail=f"Unknown source: {key}")

    @app.get("/api/sources")
    async def get_sources(q: str = "") -> list[SourceEntry]:
        """List source identifiers, optionally filtered by substring."""
        q_lower = q.lower()
        return [
            SourceEntry(key=k, selected=len(store.get(k)))
            for k in listing
            if q_lower in k.lower()
        ]

    @app.get("/api/sources/{key}/image")
    async def get_source_image(key: str) -> FileResponse:
        _require_source(key)
        if sources_dir is None:
            raise HTTPException(status_code=404, detail="No sources directory configured")
        return FileResponse(Path(sources_dir) / key)

    @app.get("/api/search")
    async def search_catalog(q: str = "", stream: str = "default") -> SearchResponseModel:
        """Debounced catalog search; superseded requests come back empty."""
        response = await search.query(q, stream=stream)
        return SearchResponseModel(
            status=response.status,
            query=response.query,
            results=[
                SearchResult(
                    name=start_case(c.entry.name),
                    value=c.entry.name,
                    location=format_location(c.entry),
                    score=round(c.score, 4),
                    severity=severity(c.score),
                )
                for c in response.candidates
            ],
        )

    @app.get("/api/selections")
    async def get_selections() -> list[SelectionResponse]:
        """All non-empty selections."""
        return [SelectionResponse(key=k, names=v) for k, v in store.snapshot().items()]

    @app.get("/api/selections/export")
    async def export_selections() -> JSONResponse:
        """Download the stored selections verbatim."""
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        return JSONResponse(
            content=store.snapshot(),
            headers={
                "Content-Disposition": f'attachment; filename="rename_school_logos_{stamp}.json"'
            },
        )

    @app.post("/api/selections/fix")
    async def fix_selections() -> FixResponse:
        """Move selections keyed by list position onto source identifiers."""
        try:
            result = store.reconcile(positional_resolver(listing))
        except SelectionPersistError as e:
            raise _persist_error(e) from e
        return FixResponse(fixed=result.fixed, dropped=result.dropped, unchanged=result.unchanged)

    @app.get("/api/selections/{key}")
    async def get_selection(key: str) -> SelectionResponse:
        return SelectionResponse(key=key, names=store.get(key))

    @app.put("/api/selections/{key}")
    async def set_selection(key: str, req: SetSelectionRequest) -> SelectionResponse:
        """Replace the selection for a source."""
        _require_source(key)
        unknown = [n for n in req.names if n not in matcher.index]
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown catalog names: {unknown}")
        try:
            names = store.set(key, req.names)
        except SelectionPersistError as e:
            raise _persist_error(e) from e
        return SelectionResponse(key=key, names=names)

    @app.delete("/api/selections/{key}/{name:path}")
    async def remove_selection(key: str, name: str) -> SelectionResponse:
        """Remove one name from a source's selection (no-op if absent)."""
        try:
            store.remove(key, name)
        except SelectionPersistError as e:
            raise _persist_error(e) from e
        return SelectionResponse(key=key, names=store.get(key))

    ui_path = Path(ui_dir) if ui_dir else None
    if ui_path is not None and ui_path.exists():
        assets_path = ui_path / "assets"
        if assets_path.exists():
            app.mount("/assets", StaticFiles(directory=str(assets_path)), name="assets")

        @app.get("/")
        async def serve_index() -> FileResponse:
            return FileResponse(ui_path / "index.html")
    else:
        @app.get("/")
        async def no_ui() -> dict[str, str]:
            return {
                "error": "UI not built",
                "message": "Pass --ui-dir pointing at a built front end, or use the /api routes",
            }

    return app
