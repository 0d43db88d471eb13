"""
extraction/extractor.py
SoF extraction using LangChain + ChatGroq.

LangChain pipeline:
  PromptTemplate → ChatGroq → JsonOutputParser → SofExtraction

The model does the document understanding (events, master details, its own
laytime view, summary). Timeline blocks are never requested from it; they
are built deterministically by timeline.builder after validation.
"""
import json
import re
from typing import Any, Optional

from pydantic import ValidationError

from config.settings import settings
from extraction.prompts import SOF_EXTRACTION_TEMPLATE
from extraction.schemas import SofExtraction
from monitoring import EVENTS_EXTRACTED, get_logger, timed
from timeline.timeutils import format_hours

log = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class ExtractionError(RuntimeError):
    """The model could not produce a usable extraction."""

    def __init__(self, message: str, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.detail = detail


class SofExtractor:
    """
    Sends SoF text to the model and validates what comes back.

    The chain is built lazily so importing this module (and running the
    timeline/laytime code paths) never needs langchain or an API key.
    """

    def __init__(self, chain=None) -> None:
        self._llm   = None
        self._chain = chain

    def _get_llm(self):
        from langchain_groq import ChatGroq
        return ChatGroq(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    def _get_chain(self):
        """LCEL chain: PromptTemplate | ChatGroq | JsonOutputParser"""
        from langchain_core.output_parsers import JsonOutputParser
        from langchain_core.prompts import PromptTemplate

        if self._llm is None:
            self._llm = self._get_llm()

        prompt = PromptTemplate(
            template=SOF_EXTRACTION_TEMPLATE,
            input_variables=["sof_content", "allowed_laytime", "demurrage_rate", "currency"],
        )
        return prompt | self._llm | JsonOutputParser()

    @property
    def chain(self):
        if self._chain is None:
            self._chain = self._get_chain()
        return self._chain

    @staticmethod
    def _prompt_variables(sof_content: str) -> dict[str, str]:
        return {
            "sof_content":     sof_content,
            "allowed_laytime": f"{format_hours(settings.allowed_laytime_hours)} "
                               f"({settings.allowed_laytime_hours:g} hours)",
            "demurrage_rate":  f"{settings.demurrage_rate_per_day:,.0f}",
            "currency":        settings.demurrage_currency,
        }

    @timed("extraction")
    def extract(self, sof_content: str) -> SofExtraction:
        """
        Extract structured data from SoF text.

        Raises:
            ValueError: empty or oversized content.
            ExtractionError: the model failed, returned an error object, or
                omitted the mandatory vessel name / events.
        """
        if not sof_content or not sof_content.strip():
            raise ValueError("SoF content is empty")
        if len(sof_content) > settings.max_sof_chars:
            raise ValueError(
                f"SoF content is {len(sof_content):,} characters; limit is {settings.max_sof_chars:,}"
            )

        log.info("Extracting SoF via LangChain ChatGroq", chars=len(sof_content))
        variables = self._prompt_variables(sof_content)

        try:
            payload = self.chain.invoke(variables)
        except Exception as exc:
            # JsonOutputParser (or the call) failed; retry once without the parser
            log.warning("Chain invocation failed — falling back to manual parse", error=str(exc))
            payload = self._manual_parse(variables)

        extraction = self._validate(payload)
        EVENTS_EXTRACTED.observe(len(extraction.events))
        log.info(
            "SoF extracted",
            vessel=extraction.vessel_name,
            port=extraction.port_of_call,
            events=len(extraction.events),
            has_laytime=extraction.laytime_calculation is not None,
        )
        return extraction

    def _manual_parse(self, variables: dict[str, str]) -> dict:
        """Fallback: call the LLM directly and strip code fences manually."""
        from langchain_core.messages import HumanMessage

        if self._llm is None:
            self._llm = self._get_llm()
        filled = SOF_EXTRACTION_TEMPLATE.format(**variables)
        try:
            response = self._llm.invoke([HumanMessage(content=filled)])
        except Exception as exc:
            raise ExtractionError("Extraction model call failed", detail=str(exc)) from exc

        raw = _FENCE_RE.sub("", str(response.content).strip()).strip()
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ExtractionError("Extraction model returned invalid JSON", detail=raw[:500]) from exc

    @staticmethod
    def _validate(payload: Any) -> SofExtraction:
        if not isinstance(payload, dict):
            raise ExtractionError("Extraction model returned a non-object response", detail=payload)
        if payload.get("error"):
            raise ExtractionError(str(payload["error"]))
        # Blocks are computed locally, never trusted from the model
        payload = {k: v for k, v in payload.items() if k not in ("timelineBlocks", "timeline_blocks")}
        try:
            return SofExtraction.model_validate(payload)
        except ValidationError as exc:
            raise ExtractionError(
                "Unable to extract vessel name and events",
                detail=exc.errors(include_url=False, include_context=False),
            ) from exc
