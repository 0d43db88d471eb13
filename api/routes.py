"""
api/routes.py
REST endpoints.
"""
import time
import uuid

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from api.models import (
    ExtractionRequest,
    ExtractionResponse,
    GuardrailReport,
    LaytimeRequest,
    LaytimeResponse,
    TimelineRequest,
    TimelineResponse,
)
from config.settings import settings
from extraction.extractor import ExtractionError
from extraction.pipeline import SofPipeline
from extraction.schemas import LaytimeCalculationModel, TimelineBlockModel
from laytime.calculator import LaytimeCalculator, LaytimeError
from monitoring import EXTRACTION_REQUESTS, async_timed, get_logger
from timeline.builder import build_timeline_blocks
from timeline.errors import TimelineError
from timeline.models import EventCategory

router = APIRouter()

_pipeline = SofPipeline()

log = get_logger(__name__)


#POST /extract

@router.post(
    "/extract",
    response_model=ExtractionResponse,
    summary="Extract port events, laytime and summary from a Statement of Fact",
    description="""
Send the text of an SoF. The model extracts master details, events, a laytime
breakdown and a summary; timeline blocks are then built locally from the
validated events.

```json
{ "sofContent": "VESSEL: MV OCEAN STAR ... 2024-05-01 08:00 Pilot on board ..." }
```
""",
)
@async_timed("extract_endpoint")
async def extract_sof(request: ExtractionRequest) -> ExtractionResponse:
    request_id = str(uuid.uuid4())[:8]
    t0 = time.perf_counter()
    log.info("Extraction request", request_id=request_id, chars=len(request.sof_content))

    try:
        processed = await run_in_threadpool(_pipeline.process, request.sof_content)
    except ExtractionError as exc:
        EXTRACTION_REQUESTS.labels(status="model_error").inc()
        log.error("Extraction failed", error=str(exc), request_id=request_id)
        raise HTTPException(status_code=502, detail={"error": str(exc), "detail": exc.detail})
    except ValueError as exc:
        EXTRACTION_REQUESTS.labels(status="invalid").inc()
        raise HTTPException(status_code=422, detail=str(exc))

    report = processed.guardrail_report
    if not processed.passed:
        EXTRACTION_REQUESTS.labels(status="guardrail_failed").inc()
        raise HTTPException(
            status_code=422,
            detail={"errors": report["issues"], "warnings": report["warnings"]},
        )

    EXTRACTION_REQUESTS.labels(status="success").inc()
    log.info(
        "Extraction complete",
        request_id=request_id,
        elapsed_ms=round((time.perf_counter() - t0) * 1000),
        events=len(processed.events),
    )
    return ExtractionResponse(
        success=True,
        request_id=request_id,
        result=processed.extraction,
        guardrail_report=GuardrailReport(**report),
    )


#POST /timeline

@router.post("/timeline", response_model=TimelineResponse, summary="Merge sorted events into timeline blocks")
async def build_timeline(request: TimelineRequest) -> TimelineResponse:
    try:
        events = [e.to_port_event() for e in request.events]
        blocks = build_timeline_blocks(events)
    except TimelineError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return TimelineResponse(
        event_count=len(events),
        block_count=len(blocks),
        blocks=[TimelineBlockModel.from_block(b) for b in blocks],
    )


#POST /laytime

@router.post("/laytime", response_model=LaytimeResponse, summary="Rules-based laytime and demurrage")
async def calculate_laytime(request: LaytimeRequest) -> LaytimeResponse:
    try:
        calculator = LaytimeCalculator(
            allowed_hours=request.allowed_laytime_hours,
            demurrage_rate_per_day=request.demurrage_rate_per_day,
        )
        result = calculator.calculate(e.to_port_event() for e in request.events)
    except (TimelineError, LaytimeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return LaytimeResponse(
        laytime=LaytimeCalculationModel.from_result(result),
        on_demurrage=result.on_demurrage,
        calculation_log=result.calculation_log,
    )


#GET /health

@router.get("/health", summary="Health check")
async def health() -> dict:
    return {
        "status": "healthy",
        "model": settings.groq_model,
        "llm_configured": bool(settings.groq_api_key),
        "laytime": {
            "source": settings.laytime_source,
            "allowed_hours": settings.allowed_laytime_hours,
            "demurrage_rate_per_day": settings.demurrage_rate_per_day,
        },
    }


# GET /categories

@router.get("/categories", summary="List event categories")
async def list_categories() -> dict:
    return {"categories": [{"value": c.value, "label": c.label} for c in EventCategory]}
