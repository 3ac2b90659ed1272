"""
Daily Plan Generator

Builds the content plan of a new session from the learner's progress:

1. Grammar drills: first two pool drills of today's grammar plus one review
   drill from another due grammar point (else the third pool drill)
2. Transfer: pool drills 3-4 when at least two remain, otherwise generated
   transfer questions
3. Vocab: up to 12 items of the lesson's first pack, due items first
4. Sentences: up to 2 sentences for the grammar, preferring gal style,
   then textbook, then any, then the same lesson; level within ±1

Usage:
    generator = PlanGenerator(repo, content, clock)
    plan = await generator.generate(progress)
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from galking.enums.learning import SessionStep, TransferVariant
from galking.middleware.error_handling import NotFoundError
from galking.models.content import GrammarPoint, Lesson, Sentence
from galking.models.learning import (
    GrammarDrillStep,
    QuestionRef,
    SentenceStep,
    StepState,
    StepTiming,
    TransferStep,
    UserProgressState,
    VocabStep,
)
from galking.repositories.base import Clock, ContentLookup, LearningRepository
from galking.services.learning.constants import (
    ADVANCE_MASTERY,
    PLAN_LEVEL_SPREAD,
    PLAN_SENTENCES,
    PLAN_STEP1_DRILLS,
    PLAN_STEP2_DRILLS,
    PLAN_VOCAB_ITEMS,
    SENTENCE_STYLE_PREFERENCE,
)
from galking.services.learning.drills import generate_transfer_drill

logger = logging.getLogger(__name__)


@dataclass
class DailyPlan:
    """Planned content of one session."""

    lesson_id: int
    grammar_id: int
    grammar_index: int
    level: int
    step_state: StepState


class PlanGenerator:
    """Selects today's grammar point and fills the four steps."""

    def __init__(
        self,
        repo: LearningRepository,
        content: ContentLookup,
        clock: Clock,
        rng: Optional[random.Random] = None,
    ):
        self.repo = repo
        self.content = content
        self.clock = clock
        self.rng = rng or random.Random()

    async def generate(self, progress: UserProgressState) -> DailyPlan:
        """
        Build the plan for a new session.

        Raises:
            NotFoundError: If no lesson with grammar content exists
        """
        lesson, grammar_index = await self.find_current_grammar(
            progress.current_lesson_id, progress.current_grammar_index
        )
        grammar_id = lesson.grammar_ids[grammar_index]
        grammar = await self.content.get_grammar_point(grammar_id)
        if grammar is None:
            raise NotFoundError(f"Grammar point {grammar_id} not found")

        level = progress.current_level
        step_state = StepState(
            current_step=SessionStep.GRAMMAR_DRILL,
            grammar_drill=await self._plan_grammar_drills(grammar),
            transfer=self._plan_transfer(grammar),
            vocab=await self._plan_vocab(lesson),
            sentence=await self._plan_sentences(grammar, level),
            timing=StepTiming(started_at=self.clock.now_ms()),
        )

        logger.info(
            f"Planned session: lesson={lesson.lesson_id} grammar={grammar_id} "
            f"level={level} drills={step_state.grammar_drill.total}+"
            f"{step_state.transfer.total} vocab={step_state.vocab.total} "
            f"sentences={step_state.sentence.total}"
        )
        return DailyPlan(
            lesson_id=lesson.lesson_id,
            grammar_id=grammar_id,
            grammar_index=grammar_index,
            level=level,
            step_state=step_state,
        )

    async def find_current_grammar(
        self, lesson_id: int, grammar_index: int
    ) -> tuple[Lesson, int]:
        """
        Find the first grammar at or after `grammar_index` with mastery < 80.

        Falls back to index 0 when every remaining item is mastered, and to
        the first lesson by order when the lesson is missing or empty.

        Returns:
            Tuple of (lesson, grammar index)
        """
        lesson = await self.content.get_lesson(lesson_id)
        if lesson is None or not lesson.grammar_ids:
            lessons = await self.content.list_lessons()
            if not lessons or not lessons[0].grammar_ids:
                raise NotFoundError("No grammar points available")
            logger.warning(
                f"Lesson {lesson_id} has no grammar; falling back to lesson "
                f"{lessons[0].lesson_id}"
            )
            return lessons[0], 0

        for i in range(max(0, grammar_index), len(lesson.grammar_ids)):
            state = await self.repo.get_grammar_state(lesson.grammar_ids[i])
            if state is None or state.mastery < ADVANCE_MASTERY:
                return lesson, i

        return lesson, 0

    # ===========================================
    # Steps
    # ===========================================

    async def _plan_grammar_drills(self, grammar: GrammarPoint) -> GrammarDrillStep:
        questions = [
            QuestionRef.drill(grammar.grammar_id, d.drill_id)
            for d in grammar.drills[:PLAN_STEP1_DRILLS]
        ]

        review = await self._pick_review_drill(grammar.grammar_id)
        if review is not None:
            questions.append(review)
        elif len(grammar.drills) > PLAN_STEP1_DRILLS:
            questions.append(
                QuestionRef.drill(
                    grammar.grammar_id, grammar.drills[PLAN_STEP1_DRILLS].drill_id
                )
            )
        return GrammarDrillStep(questions=questions)

    async def _pick_review_drill(self, exclude_grammar_id: int) -> Optional[QuestionRef]:
        now = self.clock.now_ms()
        due = sorted(
            (
                s
                for s in await self.repo.list_grammar_states()
                if s.next_review_at is not None
                and s.next_review_at <= now
                and s.grammar_id != exclude_grammar_id
            ),
            key=lambda s: s.next_review_at,
        )
        for state in due:
            grammar = await self.content.get_grammar_point(state.grammar_id)
            if grammar and grammar.drills:
                drill = self.rng.choice(grammar.drills)
                return QuestionRef.review_drill(grammar.grammar_id, drill.drill_id)
        return None

    def _plan_transfer(self, grammar: GrammarPoint) -> TransferStep:
        remaining = grammar.drills[PLAN_STEP1_DRILLS:]
        if len(remaining) >= PLAN_STEP2_DRILLS:
            return TransferStep(
                questions=[
                    QuestionRef.drill(grammar.grammar_id, d.drill_id)
                    for d in remaining[:PLAN_STEP2_DRILLS]
                ]
            )

        # Only variants the grammar point has material for
        return TransferStep(
            questions=[
                QuestionRef.transfer(grammar.grammar_id, variant)
                for variant in (TransferVariant.MEANING, TransferVariant.COUNTER)
                if generate_transfer_drill(grammar, variant) is not None
            ]
        )

    async def _plan_vocab(self, lesson: Lesson) -> VocabStep:
        if not lesson.vocab_pack_ids:
            return VocabStep()

        pack_id = lesson.vocab_pack_ids[0]
        pack = await self.content.get_vocab_pack(pack_id)
        if pack is None:
            return VocabStep(pack_id=pack_id)

        now = self.clock.now_ms()
        due_ids = {
            s.vocab_id
            for s in await self.repo.list_vocab_states()
            if s.next_review_at is not None and s.next_review_at <= now
        }
        prioritized = [v for v in pack.vocab_ids if v in due_ids] + [
            v for v in pack.vocab_ids if v not in due_ids
        ]
        return VocabStep(pack_id=pack_id, vocab_ids=prioritized[:PLAN_VOCAB_ITEMS])

    async def _plan_sentences(self, grammar: GrammarPoint, level: int) -> SentenceStep:
        candidates = await self.content.list_sentences(grammar_id=grammar.grammar_id)

        sentences: list[Sentence] = []
        for style in SENTENCE_STYLE_PREFERENCE:
            sentences = [s for s in candidates if s.style_tag == style]
            if sentences:
                break
        if not sentences:
            sentences = candidates
        if not sentences:
            sentences = await self.content.list_sentences(lesson_id=grammar.lesson_id)

        eligible = [s for s in sentences if abs(s.level - level) <= PLAN_LEVEL_SPREAD]
        if not eligible:
            eligible = sentences

        selected = eligible[:PLAN_SENTENCES]
        if not selected:
            logger.warning(f"No sentences found for grammar {grammar.grammar_id}")
        return SentenceStep(sentence_ids=[s.sentence_id for s in selected])
