"""
api/app.py
FastAPI application entry point.
Run with:  uvicorn api.app:app --port 8000
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import settings
from timeline.errors import TimelineError


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=(
            "Maritime Statement of Fact processing. Extracts port-call events, "
            "laytime/demurrage and a summary from SoF text, and merges "
            "overlapping events into timeline blocks for visualisation."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TimelineError)
    async def _timeline_handler(request: Request, exc: TimelineError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": "Invalid timeline input", "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def _global_handler(request: Request, exc: Exception) -> JSONResponse:
        from monitoring import get_logger
        get_logger(__name__).error("Unhandled error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "detail": str(exc)},
        )

    from api.routes import router
    app.include_router(router, prefix="/api/v1", tags=["SoF Events"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.app:app", host=settings.api_host, port=settings.api_port, log_level="info")
