"""
Drill Resolution

Resolves structured question references to the drill the learner sees:
- Pool drills (current or review grammar) looked up in the grammar's pool
- Judge drills normalized to a two-option choice (a = true, b = false)
- Transfer drills generated from the grammar point itself
- Vocab questions, whose correct id is the vocab id
"""

import re
from typing import Optional

from galking.enums.learning import DrillType, QuestionKind, TransferVariant
from galking.middleware.error_handling import NotFoundError
from galking.models.content import Drill, DrillOption, GrammarPoint
from galking.models.learning import QuestionRef
from galking.repositories.base import ContentLookup

JUDGE_TRUE_ID = "a"
JUDGE_FALSE_ID = "b"

MEANING_DISTRACTORS = (
    "Expresses a continuing state of an action",
    "Expresses a past experience",
    "Expresses a guess about the future",
)

# Leading judge marks (×, ○, X, O) on example sentences
_MARK_PREFIX = re.compile(r"^[×○XOxo\s]+")


def normalize_judge_drill(drill: Drill) -> Drill:
    """Convert a judge drill into a true/false choice; other drills pass through."""
    if drill.type != DrillType.JUDGE:
        return drill

    is_true = (drill.correct_answer or "").strip().lower() == "true"
    return drill.model_copy(
        update={
            "type": DrillType.CHOICE,
            "options": [
                DrillOption(id=JUDGE_TRUE_ID, text="○ Correct"),
                DrillOption(id=JUDGE_FALSE_ID, text="× Incorrect"),
            ],
            "correct_id": JUDGE_TRUE_ID if is_true else JUDGE_FALSE_ID,
        }
    )


def _clean_option_text(text: str) -> str:
    return _MARK_PREFIX.sub("", text).strip()


def generate_transfer_drill(
    grammar: GrammarPoint, variant: TransferVariant
) -> Optional[Drill]:
    """
    Build a generated transfer question for a grammar point.

    MEANING asks for the core rule among fixed distractors. COUNTER asks
    which sentence is wrong; it needs at least one counter example and
    returns None otherwise.
    """
    drill_id = f"transfer_{grammar.grammar_id}_{variant.value}"

    if variant == TransferVariant.MEANING:
        return Drill(
            drill_id=drill_id,
            type=DrillType.CHOICE,
            stem=f"What is the core rule of 「{grammar.name}」?",
            options=[DrillOption(id="a", text=grammar.core_rule)]
            + [
                DrillOption(id=option_id, text=text)
                for option_id, text in zip("bcd", MEANING_DISTRACTORS)
            ],
            correct_id="a",
            explanation=grammar.core_rule,
            grammar_id=grammar.grammar_id,
        )

    if not grammar.counter_examples:
        return None

    counter = grammar.counter_examples[0]
    fallbacks = ("Correct example", "Another correct example", "A third correct example")
    correct_texts = [
        grammar.examples[i].text if i < len(grammar.examples) else fallbacks[i]
        for i in range(3)
    ]
    return Drill(
        drill_id=drill_id,
        type=DrillType.CHOICE,
        stem="Which of these sentences uses the grammar incorrectly?",
        options=[DrillOption(id="a", text=_clean_option_text(counter.text))]
        + [
            DrillOption(id=option_id, text=_clean_option_text(text))
            for option_id, text in zip("bcd", correct_texts)
        ],
        correct_id="a",
        explanation=counter.hint,
        grammar_id=grammar.grammar_id,
    )


async def resolve_drill(content: ContentLookup, ref: QuestionRef) -> Drill:
    """
    Resolve a drill-type question reference to its (normalized) drill.

    Raises:
        NotFoundError: If the grammar point or drill does not exist
    """
    grammar = await content.get_grammar_point(ref.grammar_id)
    if grammar is None:
        raise NotFoundError(f"Grammar point {ref.grammar_id} not found")

    if ref.kind == QuestionKind.TRANSFER:
        drill = generate_transfer_drill(grammar, ref.variant)
        if drill is None:
            raise NotFoundError(f"Transfer drill {ref.key} cannot be generated")
        return drill

    for drill in grammar.drills:
        if drill.drill_id == ref.drill_id:
            return normalize_judge_drill(drill)
    raise NotFoundError(f"Drill {ref.drill_id} not found in grammar {ref.grammar_id}")


async def resolve_correct_id(content: ContentLookup, ref: QuestionRef) -> tuple[str, str]:
    """
    Look up the correct option id and explanation of any question.

    Returns:
        Tuple of (correct_id, explanation)

    Raises:
        NotFoundError: If the referenced content does not exist
    """
    if ref.kind == QuestionKind.VOCAB:
        vocab = await content.get_vocab(ref.vocab_id)
        if vocab is None:
            raise NotFoundError(f"Vocab {ref.vocab_id} not found")
        return str(vocab.vocab_id), ", ".join(vocab.meanings)

    drill = await resolve_drill(content, ref)
    # Fill/reorder drills may only carry the expected answer text
    correct = drill.correct_id or drill.correct_answer
    if correct is None:
        raise NotFoundError(f"Drill {ref.key} has no correct answer")
    return correct, drill.explanation
