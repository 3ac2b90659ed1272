"""
Content Models (Pydantic)

Read-only definitions served by the content lookup: lessons, grammar points
with their drill pools, vocabulary, vocabulary packs and sentences with their
expected key-point sets.

ARCHITECTURE NOTE:
    The engine never mutates content. The SQL content repository converts
    rows of galking/db/models.py content tables into these models.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from galking.enums.learning import DrillType, VocabPackType
from galking.models.base import StrictResponse


class Example(StrictResponse):
    """Example sentence with a translation hint."""

    text: str
    hint: str = ""


class DrillOption(StrictResponse):
    """One selectable option of a choice drill."""

    id: str
    text: str


class Drill(StrictResponse):
    """
    A single drill question belonging to a grammar point.

    Judge drills carry `correct_answer` ("true"/"false") instead of options;
    they are normalized to a two-option choice when looked up.
    """

    drill_id: str
    type: DrillType = DrillType.CHOICE
    stem: str
    options: list[DrillOption] = Field(default_factory=list)
    correct_id: Optional[str] = None
    correct_answer: Optional[str] = None
    explanation: str = ""
    grammar_id: Optional[int] = None


class KeyPoint(StrictResponse):
    """Atomic grammatical feature a sentence is expected to test."""

    id: str
    label: str
    expected_value: Optional[str] = None
    hint: Optional[str] = None


class Lesson(StrictResponse):
    """A lesson with its ordered grammar list and vocabulary packs."""

    lesson_id: int
    title: str
    goal: str = ""
    order_index: int
    grammar_ids: list[int] = Field(default_factory=list)
    vocab_pack_ids: list[int] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class GrammarPoint(StrictResponse):
    """A grammar point and its drill pool."""

    grammar_id: int
    lesson_id: int
    name: str
    core_rule: str = ""
    structure: str = ""
    mnemonic: str = ""
    examples: list[Example] = Field(default_factory=list)
    counter_examples: list[Example] = Field(default_factory=list)
    drills: list[Drill] = Field(default_factory=list)
    level: int = 1
    tags: list[str] = Field(default_factory=list)


class Vocab(StrictResponse):
    """A vocabulary item."""

    vocab_id: int
    surface: str
    reading: str = ""
    meanings: list[str] = Field(default_factory=list)
    level: int = 1
    tags: list[str] = Field(default_factory=list)


class VocabPack(StrictResponse):
    """An ordered group of vocabulary items."""

    pack_id: int
    name: str
    type: VocabPackType = VocabPackType.LESSON
    lesson_id: Optional[int] = None
    vocab_ids: list[int] = Field(default_factory=list)
    level: int = 1


class Sentence(StrictResponse):
    """A sentence with the key points the learner should identify."""

    sentence_id: int
    text: str
    style_tag: str = "textbook"
    lesson_id: Optional[int] = None
    level: int = 1
    grammar_ids: list[int] = Field(default_factory=list)
    key_points: list[KeyPoint] = Field(default_factory=list)
    blocking_vocab_ids: list[int] = Field(default_factory=list)


class ContentDataset(StrictResponse):
    """A full content dataset as loaded by the import script."""

    lessons: list[Lesson] = Field(default_factory=list)
    grammar_points: list[GrammarPoint] = Field(default_factory=list)
    vocab: list[Vocab] = Field(default_factory=list)
    vocab_packs: list[VocabPack] = Field(default_factory=list)
    sentences: list[Sentence] = Field(default_factory=list)
