from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator

from bazaar.schemas.listing import Source


DEFAULT_VOCABULARY_PATH = Path(__file__).resolve().parent.parent / "data" / "vocabulary.json"


class Vocabulary(BaseModel):
    synonyms: Dict[str, List[str]] = {}
    steering: Dict[Source, List[str]] = {}

    @field_validator("synonyms")
    @classmethod
    def _lowercase_synonyms(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {key.strip().lower(): [word.strip().lower() for word in words] for key, words in value.items()}

    @field_validator("steering")
    @classmethod
    def _lowercase_steering(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {source: [word.strip().lower() for word in words] for source, words in value.items()}


def load_vocabulary(path: Optional[str] = None) -> Vocabulary:
    source = Path(path) if path else DEFAULT_VOCABULARY_PATH
    return Vocabulary.model_validate_json(source.read_text(encoding="utf-8"))


@lru_cache
def default_vocabulary() -> Vocabulary:
    return load_vocabulary()
