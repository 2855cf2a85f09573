"""
Structured extraction from compound text.

One LLM call per note yields the summary, atomic knowledge statements (each
flagged as an ask or not), topics and, in the intentions pipeline variant,
intentions. In the asks variant a second, narrower call mines topics implied
only by the asks. Model output is validated against the extraction models as
soon as it arrives.
"""

import asyncio
import json
import re

from pydantic import ValidationError as PydanticValidationError

from notegraph.config import Config
from notegraph.core.llm.base import LLMProvider
from notegraph.models.extraction import AskTopicsResult, ExtractedEntity, ExtractionResult
from notegraph.models.knowledge import normalize_name
from notegraph.utils.exceptions import (
    ConfigurationError,
    ExtractionError,
    LLMError,
    ValidationError,
)
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

PIPELINE_VARIANTS = ("asks", "intentions")

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")

TOPIC_GUIDELINES = (
    "Use commonly used terminology and standard definitions. Prefer widely recognized "
    'terms over niche or custom terminology. For example, use "Graphic Design" instead of '
    '"Visual Communication Design", "Web Development" instead of "Frontend Engineering", '
    '"Machine Learning" instead of "Neural Network Training".'
)

EXTRACTION_SYSTEM_PROMPT = """You are an expert at extracting structured information from text.

Extract the following:
1. A one-sentence summary (can include annotated note content for context)
2. Atomic knowledge points (high-to-low level, each in one sentence, no compounded knowledge). Flag each point with isAsk = true if it expresses a clear intention to find, seek, need, or look for resources, people, help, services, tools, information, or opportunities, explicit or implicit (e.g. "looking for graphic designer", "need help with X", "seeking collaborators"). An ask is a single sentence describing what is being sought.
3. Topics (general and specific, each under 3 words, with one-sentence descriptions). {topic_guidelines}{intentions_item}

IMPORTANT: When extracting atomic knowledge, topics{intentions_name}, ONLY extract from the current note's content (the note text, image descriptions, and URL references). DO NOT extract from any [Annotated Note: ...] sections, as that content has already been indexed separately. The annotated note is only provided for context when generating the summary.

CRITICAL: You MUST respond with ONLY a valid JSON object, no other text. The JSON must have these exact fields:
- summary: string (one sentence)
- atomicKnowledge: Array<{{text: string, isAsk: boolean}}>
- topics: Array<{{name: string, description: string}}>{intentions_field}"""

INTENTIONS_ITEM = """
4. Intentions (what the author is trying to achieve or do, each under 3 words, with one-sentence descriptions, e.g. "Hiring", "Fundraising", "Learning")"""

INTENTIONS_FIELD = """
- intentions: Array<{name: string, description: string}>"""

EXTRACTION_USER_PROMPT = """Extract information from this text. Remember to exclude [Annotated Note: ...] sections when extracting atomic knowledge and topics. Respond with ONLY a valid JSON object:

{compound_text}"""

ASK_TOPICS_SYSTEM_PROMPT = f"""You are an expert at identifying what people are looking for.

Given a list of asks (statements of what someone is seeking) and the topics already extracted from the same note, identify ADDITIONAL topics that the asks imply but the existing topics do not cover, e.g. the field of the person or resource being sought. Each topic name is under 3 words with a one-sentence description. {TOPIC_GUIDELINES}

Do not repeat existing topics. Return an empty list if nothing new is implied.

CRITICAL: You MUST respond with ONLY a valid JSON object of the form:
{{"topics": [{{"name": string, "description": string}}]}}"""

ASK_TOPICS_USER_PROMPT = """Asks:
{asks}

Existing topics:
{topics}

Respond with ONLY a valid JSON object."""

SUMMARY_SYSTEM_PROMPT = "You are an expert at summarizing text. Provide a concise one-sentence summary."


def parse_json_object(content: str) -> dict:
    """
    Parse a JSON object from model output.

    Accepts bare JSON or JSON wrapped in a markdown code fence.

    Raises:
        ExtractionError: If no JSON object can be parsed
    """
    text = (content or "").strip()
    match = _FENCED_JSON.search(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"Model returned invalid JSON: {e}", context={"content": text[:200]}
        ) from e

    if not isinstance(data, dict):
        raise ExtractionError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class ExtractionEngine:
    """
    Extraction engine for compound text.

    Features:
    - Single extraction call per note
    - Optional ask-topic mining pass (asks variant)
    - Optional intentions (intentions variant)
    - Schema validation of every response
    """

    def __init__(self, llm: LLMProvider, config: Config):
        """
        Initialize extraction engine.

        Args:
            llm: LLM provider used for extraction
            config: Configuration object

        Raises:
            ConfigurationError: If the pipeline variant is unknown
        """
        self.llm = llm
        self.config = config
        self.variant = config.indexing.pipeline_variant

        if self.variant not in PIPELINE_VARIANTS:
            raise ConfigurationError(
                f"Unknown pipeline variant: {self.variant}",
                context={"allowed": list(PIPELINE_VARIANTS)},
            )

    @property
    def mines_ask_topics(self) -> bool:
        return self.variant == "asks"

    @property
    def extracts_intentions(self) -> bool:
        return self.variant == "intentions"

    def _system_prompt(self) -> str:
        with_intentions = self.extracts_intentions
        return EXTRACTION_SYSTEM_PROMPT.format(
            topic_guidelines=TOPIC_GUIDELINES,
            intentions_item=INTENTIONS_ITEM if with_intentions else "",
            intentions_name=" and intentions" if with_intentions else "",
            intentions_field=INTENTIONS_FIELD if with_intentions else "",
        )

    async def _complete(
        self, prompt: str, system: str, max_tokens: int, json_mode: bool = True
    ) -> str:
        try:
            return await asyncio.wait_for(
                self.llm.complete(
                    prompt,
                    system=system,
                    json_mode=json_mode,
                    max_tokens=max_tokens,
                    temperature=self.config.llm.temperature,
                ),
                timeout=self.config.indexing.call_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExtractionError(
                f"LLM call timed out after {self.config.indexing.call_timeout}s"
            ) from e
        except ExtractionError:
            raise
        except LLMError as e:
            raise ExtractionError(f"LLM call failed: {e.message}", context=e.context) from e

    async def extract(self, compound_text: str) -> ExtractionResult:
        """
        Extract summary, atomic knowledge, topics (and intentions).

        Missing or empty fields in the model output become empty values.

        Args:
            compound_text: Non-empty compound text

        Returns:
            Validated extraction result

        Raises:
            ValidationError: If compound_text is empty
            ExtractionError: If the call fails or returns unusable output
        """
        if not compound_text or not compound_text.strip():
            raise ValidationError("Compound text cannot be empty")

        prompt = EXTRACTION_USER_PROMPT.format(compound_text=compound_text)
        logger.debug("Extracting from compound text", extra={"length": len(compound_text)})

        content = await self._complete(
            prompt, self._system_prompt(), max_tokens=self.config.llm.max_tokens
        )
        data = parse_json_object(content)
        if not self.extracts_intentions:
            data.pop("intentions", None)

        try:
            result = ExtractionResult.model_validate(data)
        except PydanticValidationError as e:
            raise ExtractionError(f"Extraction output failed validation: {e}") from e

        logger.info(
            "Extraction complete",
            extra={
                "statements": len(result.atomic_knowledge),
                "asks": len(result.asks),
                "topics": len(result.topics),
                "intentions": len(result.intentions),
            },
        )
        return result

    async def extract_ask_topics(
        self, asks: list[str], known_topics: list[ExtractedEntity]
    ) -> list[ExtractedEntity]:
        """
        Mine topics implied by asks that the known topics do not cover.

        Args:
            asks: Ask statements of the note
            known_topics: Topics already extracted from the same note

        Returns:
            New topic candidates (never one of the known topics)

        Raises:
            ExtractionError: If the call fails or returns unusable output
        """
        if not asks:
            return []

        prompt = ASK_TOPICS_USER_PROMPT.format(
            asks="\n".join(f"- {ask}" for ask in asks),
            topics="\n".join(f"- {t.name}: {t.description}" for t in known_topics) or "(none)",
        )
        content = await self._complete(prompt, ASK_TOPICS_SYSTEM_PROMPT, max_tokens=500)

        try:
            result = AskTopicsResult.model_validate(parse_json_object(content))
        except PydanticValidationError as e:
            raise ExtractionError(f"Ask topic output failed validation: {e}") from e

        known = {normalize_name(t.name) for t in known_topics}
        return [t for t in result.topics if normalize_name(t.name) not in known]

    async def extract_summary(self, compound_text: str) -> str:
        """
        One-sentence summary only.

        Raises:
            ValidationError: If compound_text is empty
            ExtractionError: If the call fails
        """
        if not compound_text or not compound_text.strip():
            raise ValidationError("Compound text cannot be empty")

        summary = await self._complete(
            f"Summarize this text in one sentence:\n\n{compound_text}",
            SUMMARY_SYSTEM_PROMPT,
            max_tokens=100,
            json_mode=False,
        )

        return summary.strip()
