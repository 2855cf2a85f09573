"""
Extraction payload models.

The LLM returns loosely structured JSON. These models validate it on receipt
and coerce the shapes models commonly produce (camelCase keys, bare strings,
a separate "asks" list, nulls) into one known-good structure. Malformed list
entries are dropped instead of failing the whole payload.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from notegraph.models.knowledge import normalize_name


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _coerce_entities(value: Any) -> list[dict]:
    entities = []
    for entry in _as_list(value):
        if isinstance(entry, str):
            entities.append({"name": entry})
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            entities.append(entry)
    return entities


def _dedupe_entities(entities: list["ExtractedEntity"]) -> list["ExtractedEntity"]:
    seen: set[str] = set()
    unique = []
    for entity in entities:
        key = normalize_name(entity.name)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(entity)
    return unique


class ExtractedStatement(BaseModel):
    """Atomic statement as returned by the model."""

    text: str = Field(..., description="One-sentence statement")
    is_ask: bool = Field(default=False, description="True if it expresses a need or request")

    @field_validator("text")
    @classmethod
    def _strip_text(cls, v: str) -> str:
        return v.strip()


class ExtractedEntity(BaseModel):
    """Topic or intention candidate as returned by the model."""

    name: str = Field(..., description="Short name, under three words")
    description: str = Field(default="", description="One-sentence description")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return " ".join(v.split())

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""


class ExtractionResult(BaseModel):
    """Structured output of the main extraction call."""

    summary: str | None = Field(default=None, description="One-sentence summary")
    atomic_knowledge: list[ExtractedStatement] = Field(default_factory=list)
    topics: list[ExtractedEntity] = Field(default_factory=list)
    intentions: list[ExtractedEntity] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        if "atomicKnowledge" in data and "atomic_knowledge" not in data:
            data["atomic_knowledge"] = data.pop("atomicKnowledge")

        statements = []
        for entry in _as_list(data.get("atomic_knowledge")):
            if isinstance(entry, str):
                statements.append({"text": entry, "is_ask": False})
            elif isinstance(entry, dict) and isinstance(entry.get("text"), str):
                item = dict(entry)
                if "isAsk" in item and "is_ask" not in item:
                    item["is_ask"] = item.pop("isAsk")
                item["is_ask"] = _coerce_flag(item.get("is_ask"))
                statements.append(item)

        # Older prompt shape: asks returned as their own list of sentences
        for entry in _as_list(data.pop("asks", None)):
            if isinstance(entry, str):
                statements.append({"text": entry, "is_ask": True})
            elif isinstance(entry, dict) and isinstance(entry.get("text"), str):
                statements.append({**entry, "is_ask": True})

        data["atomic_knowledge"] = statements
        data["topics"] = _coerce_entities(data.get("topics"))
        data["intentions"] = _coerce_entities(data.get("intentions"))

        summary = data.get("summary")
        data["summary"] = (summary.strip() or None) if isinstance(summary, str) else None
        return data

    @field_validator("atomic_knowledge")
    @classmethod
    def _drop_blank_statements(cls, v: list[ExtractedStatement]) -> list[ExtractedStatement]:
        return [s for s in v if s.text]

    @field_validator("topics", "intentions")
    @classmethod
    def _dedupe(cls, v: list[ExtractedEntity]) -> list[ExtractedEntity]:
        return _dedupe_entities(v)

    @property
    def knowledge(self) -> list[ExtractedStatement]:
        """Statements that are not asks."""
        return [s for s in self.atomic_knowledge if not s.is_ask]

    @property
    def asks(self) -> list[ExtractedStatement]:
        """Statements flagged as asks."""
        return [s for s in self.atomic_knowledge if s.is_ask]


class AskTopicsResult(BaseModel):
    """Structured output of the secondary ask-topic call."""

    topics: list[ExtractedEntity] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_payload(cls, data: Any) -> Any:
        if isinstance(data, list):
            data = {"topics": data}
        if not isinstance(data, dict):
            return data
        return {"topics": _coerce_entities(data.get("topics"))}

    @field_validator("topics")
    @classmethod
    def _dedupe(cls, v: list[ExtractedEntity]) -> list[ExtractedEntity]:
        return _dedupe_entities(v)
