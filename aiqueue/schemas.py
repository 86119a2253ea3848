"""Structured response models for the word task types.

The JSON schema of each model is what the generator is asked to follow;
the matching ``validate_*`` function turns the raw response text back into
a model instance or raises :class:`ResponseValidationError`.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from aiqueue.errors import ResponseValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class WordDefinition(BaseModel):
    definition: str
    partOfSpeech: str
    pronunciation: str | None = None
    synonyms: list[str] | None = None
    antonyms: list[str] | None = None
    examples: list[str] | None = None
    etymology: str | None = None


class WordInfoResponse(BaseModel):
    word: str
    definitions: list[WordDefinition]


class Morpheme(BaseModel):
    morpheme: str
    meaning: str
    synonyms: list[str] | None = None
    origin: str | None = None


class MorphologyBreakdown(BaseModel):
    prefixes: list[Morpheme] | None = None
    root: Morpheme
    suffixes: list[Morpheme] | None = None


class WordMorphologyResponse(BaseModel):
    word: str
    breakdown: MorphologyBreakdown
    derivedMeaning: str


def response_schema(model: type[BaseModel]) -> dict[str, Any]:
    return model.model_json_schema()


def _validate(model: type[ModelT], raw: str, label: str) -> ModelT:
    try:
        return model.model_validate_json(raw)
    except ValidationError as exc:
        raise ResponseValidationError(f"Invalid {label} format") from exc


def validate_word_info(raw: str) -> WordInfoResponse:
    return _validate(WordInfoResponse, raw, "word information")


def validate_word_morphology(raw: str) -> WordMorphologyResponse:
    return _validate(WordMorphologyResponse, raw, "morphology information")
