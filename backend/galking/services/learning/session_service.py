"""
Practice Session Service

Drives one day's practice session through its fixed steps:

    1 GRAMMAR_DRILL → 2 TRANSFER → 3 VOCAB → 4 SENTENCE → 5 FINISHED

Each operation loads the session record, validates the current step,
mutates the tagged step payload and writes the full snapshot back
(write-through), so an interrupted session resumes from its last
persisted state.

Step rules:
- answer_question is valid in steps 1-3, submit_sentence in step 4
- next_step moves strictly forward by one and is refused at step 5
- finish_session scores the session, hands the updates to ProgressService
  and marks the record completed; afterwards only the coach summary may
  be patched

Usage:
    from galking.services.learning import SessionService

    service = SessionService(repo, content, clock)

    session = await service.create_or_resume()
    result = await service.answer_question(session.session_id, "a", time_ms=1800)
    await service.next_step(session.session_id)
    finished = await service.finish_session(session.session_id)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from galking.config import settings
from galking.enums.learning import CoachSource, SessionStatus, SessionStep
from galking.middleware.error_handling import InvalidStateError, NotFoundError
from galking.models.learning import (
    AnswerRecord,
    AnswerResult,
    CoachSummary,
    QuestionRef,
    SentenceScoreResponse,
    SentenceSubmission,
    SessionRecord,
    SessionStateResponse,
    StepProgress,
    StepState,
)
from galking.repositories.base import Clock, ContentLookup, LearningRepository
from galking.services.learning.drills import resolve_correct_id
from galking.services.learning.plan_generator import PlanGenerator
from galking.services.learning.progress_service import ProgressService
from galking.services.learning.scorer import (
    GrammarScoreUpdate,
    SessionScoreInput,
    VocabScoreUpdate,
    apply_sentence_outcome,
    calculate_grammar_update,
    calculate_session_result,
    calculate_vocab_update,
    score_sentence_submission,
)

logger = logging.getLogger(__name__)

# StepState attribute holding each step's payload
_PAYLOAD_FIELDS = {
    SessionStep.GRAMMAR_DRILL: "grammar_drill",
    SessionStep.TRANSFER: "transfer",
    SessionStep.VOCAB: "vocab",
    SessionStep.SENTENCE: "sentence",
}

_ANSWER_STEPS = (SessionStep.GRAMMAR_DRILL, SessionStep.TRANSFER, SessionStep.VOCAB)


class SessionService:
    """
    Session state machine.

    Stateless between calls: every operation works on the persisted record,
    so any instance can continue any session.
    """

    def __init__(
        self,
        repo: LearningRepository,
        content: ContentLookup,
        clock: Clock,
        progress_service: Optional[ProgressService] = None,
        plan_generator: Optional[PlanGenerator] = None,
        fast_threshold_ms: Optional[int] = None,
    ):
        """
        Initialize session service.

        Args:
            repo: Learner-state repository
            content: Read-only content lookup
            clock: Time source
            progress_service: Applies finished-session updates
                (defaults to a ProgressService over the same collaborators)
            plan_generator: Builds new session plans
                (defaults to a PlanGenerator over the same collaborators)
            fast_threshold_ms: Vocab speed-bonus bound
                (defaults to settings.VOCAB_FAST_THRESHOLD_MS)
        """
        self.repo = repo
        self.content = content
        self.clock = clock
        self.progress = progress_service or ProgressService(repo, content, clock)
        self.planner = plan_generator or PlanGenerator(repo, content, clock)
        self.fast_threshold_ms = (
            settings.VOCAB_FAST_THRESHOLD_MS if fast_threshold_ms is None else fast_threshold_ms
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_or_resume(self) -> SessionRecord:
        """
        Return today's in-progress session, or plan and create a new one.

        A completed session today does not block a new one.

        Raises:
            NotFoundError: If there is no content to plan from
        """
        today = self.clock.today()
        for record in await self.repo.list_sessions_by_date(today):
            if record.status == SessionStatus.IN_PROGRESS:
                logger.info(
                    f"Resuming session {record.session_id} at step "
                    f"{record.step_state.current_step.value}"
                )
                return record

        progress = await self.progress.get_progress()
        plan = await self.planner.generate(progress)

        record = await self.repo.create_session(
            SessionRecord(
                date=today,
                planned_lesson_id=plan.lesson_id,
                planned_grammar_id=plan.grammar_id,
                planned_level=plan.level,
                step_state=plan.step_state,
                started_at=plan.step_state.timing.started_at,
            )
        )
        logger.info(
            f"Created session {record.session_id} for {today}: "
            f"lesson={plan.lesson_id} grammar={plan.grammar_id}"
        )
        return record

    async def get_session(self, session_id: int) -> SessionRecord:
        """
        Load a session record.

        Raises:
            NotFoundError: If the session does not exist
        """
        record = await self.repo.get_session(session_id)
        if record is None:
            raise NotFoundError(f"Session {session_id} not found")
        return record

    async def _load_in_progress(self, session_id: int) -> SessionRecord:
        record = await self.get_session(session_id)
        if record.status == SessionStatus.COMPLETED:
            raise InvalidStateError(f"Session {session_id} is already completed")
        return record

    async def _save_state(self, record: SessionRecord, state: StepState) -> SessionRecord:
        timing = state.timing.model_copy(
            update={"elapsed_ms": self.clock.now_ms() - state.timing.started_at}
        )
        record = record.model_copy(
            update={"step_state": state.model_copy(update={"timing": timing})}
        )
        return await self.repo.save_session(record)

    # =========================================================================
    # Step Inspection
    # =========================================================================

    @staticmethod
    def get_step_progress(record: SessionRecord) -> StepProgress:
        """(current index, total) of the current step; zeros at step 5."""
        payload = record.step_state.payload_for(record.step_state.current_step)
        if payload is None:
            return StepProgress()
        return StepProgress(current=payload.current_index, total=payload.total)

    @staticmethod
    def current_item(
        record: SessionRecord,
    ) -> tuple[Optional[QuestionRef], Optional[int]]:
        """
        The item awaiting an answer in the current step.

        Returns:
            Tuple of (question, sentence_id); both None when the step is
            exhausted or terminal
        """
        state = record.step_state
        step = state.current_step
        if step in (SessionStep.GRAMMAR_DRILL, SessionStep.TRANSFER):
            payload = state.payload_for(step)
            if payload.current_index < payload.total:
                return payload.questions[payload.current_index], None
        elif step == SessionStep.VOCAB:
            if state.vocab.current_index < state.vocab.total:
                return QuestionRef.vocab(state.vocab.vocab_ids[state.vocab.current_index]), None
        elif step == SessionStep.SENTENCE:
            if state.sentence.current_index < state.sentence.total:
                return None, state.sentence.sentence_ids[state.sentence.current_index]
        return None, None

    def build_state_response(self, record: SessionRecord) -> SessionStateResponse:
        question, sentence_id = self.current_item(record)
        return SessionStateResponse(
            session_id=record.session_id,
            date=record.date,
            status=record.status,
            current_step=record.step_state.current_step,
            step_progress=self.get_step_progress(record),
            current_question=question,
            current_sentence_id=sentence_id,
            planned_lesson_id=record.planned_lesson_id,
            planned_grammar_id=record.planned_grammar_id,
            planned_level=record.planned_level,
            stars=record.stars,
            result=record.result,
        )

    # =========================================================================
    # Step Operations
    # =========================================================================

    async def answer_question(
        self, session_id: int, selected_id: str, time_ms: int = 0
    ) -> AnswerResult:
        """
        Record an answer to the current question of steps 1-3.

        Args:
            session_id: Session id
            selected_id: Chosen option id (the vocab id in step 3)
            time_ms: Reaction time in milliseconds

        Returns:
            AnswerResult with correctness and whether the step has more items

        Raises:
            NotFoundError: If the session or the referenced content is missing
            InvalidStateError: Wrong step, exhausted step or completed session
        """
        record = await self._load_in_progress(session_id)
        state = record.step_state
        step = state.current_step
        if step not in _ANSWER_STEPS:
            raise InvalidStateError(f"Cannot answer a question in step {step.value}")

        question, _ = self.current_item(record)
        if question is None:
            raise InvalidStateError(f"Step {step.value} has no remaining questions")

        correct_id, explanation = await resolve_correct_id(self.content, question)
        answer = AnswerRecord(
            question=question,
            selected_id=selected_id,
            correct_id=correct_id,
            is_correct=selected_id == correct_id,
            time_ms=time_ms,
        )

        payload = state.payload_for(step)
        answered = payload.current_index + 1
        update = {"current_index": answered, "answers": [*payload.answers, answer]}
        if step == SessionStep.VOCAB:
            update.update(
                correct=payload.correct + int(answer.is_correct),
                wrong=payload.wrong + int(not answer.is_correct),
                avg_rt_ms=(payload.avg_rt_ms * (answered - 1) + time_ms) / answered,
            )
        payload = payload.model_copy(update=update)

        await self._save_state(
            record, state.model_copy(update={_PAYLOAD_FIELDS[step]: payload})
        )
        logger.debug(
            f"Session {session_id} step {step.value}: {question.key} "
            f"{'correct' if answer.is_correct else 'wrong'} ({time_ms}ms)"
        )
        return AnswerResult(
            is_correct=answer.is_correct,
            correct_id=correct_id,
            explanation=explanation,
            can_continue=answered < payload.total,
        )

    async def submit_sentence(
        self, session_id: int, checked_key_point_ids: list[str]
    ) -> SentenceScoreResponse:
        """
        Score the key points flagged for the current sentence of step 4.

        Raises:
            NotFoundError: If the session or sentence is missing
            InvalidStateError: Wrong step, exhausted step or completed session
        """
        record = await self._load_in_progress(session_id)
        state = record.step_state
        if state.current_step != SessionStep.SENTENCE:
            raise InvalidStateError(
                f"Cannot submit a sentence in step {state.current_step.value}"
            )

        _, sentence_id = self.current_item(record)
        if sentence_id is None:
            raise InvalidStateError("Step 4 has no remaining sentences")

        sentence = await self.content.get_sentence(sentence_id)
        if sentence is None:
            raise NotFoundError(f"Sentence {sentence_id} not found")

        score = score_sentence_submission(checked_key_point_ids, sentence.key_points)
        submission = SentenceSubmission(
            sentence_id=sentence_id,
            checked_key_point_ids=tuple(checked_key_point_ids),
            hit_count=score.hit_count,
            total_count=score.total_count,
            passed=score.passed,
        )
        payload = state.sentence.model_copy(
            update={
                "current_index": state.sentence.current_index + 1,
                "submissions": [*state.sentence.submissions, submission],
            }
        )

        await self._save_state(record, state.model_copy(update={"sentence": payload}))
        logger.debug(
            f"Session {session_id} sentence {sentence_id}: "
            f"{score.hit_count}/{score.total_count} passed={score.passed}"
        )
        return SentenceScoreResponse(
            hit_rate=score.hit_rate,
            passed=score.passed,
            can_continue=payload.current_index < payload.total,
        )

    async def next_step(self, session_id: int) -> SessionRecord:
        """
        Advance to the next step.

        Raises:
            InvalidStateError: At step 5 or on a completed session
        """
        record = await self._load_in_progress(session_id)
        state = record.step_state
        if state.current_step >= SessionStep.FINISHED:
            raise InvalidStateError(f"Session {session_id} is already at the final step")

        new_step = SessionStep(state.current_step + 1)
        logger.info(f"Session {session_id} advanced to step {new_step.value}")
        return await self._save_state(
            record, state.model_copy(update={"current_step": new_step})
        )

    # =========================================================================
    # Finish
    # =========================================================================

    async def finish_session(self, session_id: int) -> SessionRecord:
        """
        Score the session, apply its updates and mark it completed.

        Step 1/2 answers are grouped by grammar point, step 3 answers by
        vocab item. Step 4 passes and failures are folded into the planned
        grammar point. ProgressService persists the updates before the
        session is marked completed.

        Returns:
            The completed SessionRecord carrying its result

        Raises:
            InvalidStateError: If the session is already completed
        """
        record = await self._load_in_progress(session_id)
        state = record.step_state

        grammar_updates = await self._grammar_updates(record)
        vocab_updates, new_blocking = await self._vocab_updates(record)

        result = calculate_session_result(
            SessionScoreInput(
                step1_answers=list(state.grammar_drill.answers),
                step2_answers=list(state.transfer.answers),
                vocab_correct=state.vocab.correct,
                vocab_total=state.vocab.total,
                vocab_avg_rt_ms=state.vocab.avg_rt_ms,
                submissions=list(state.sentence.submissions),
                recent_accuracies=await self.progress.get_recent_accuracies(),
                new_blocking_count=new_blocking,
            )
        )

        advancement = await self.progress.apply_session_results(
            result, grammar_updates, vocab_updates, record.planned_lesson_id
        )

        completed = record.model_copy(
            update={
                "status": SessionStatus.COMPLETED,
                "result": result,
                "stars": result.stars,
                "finished_at": self.clock.now_ms(),
            }
        )
        completed = await self._save_state(
            completed, state.model_copy(update={"current_step": SessionStep.FINISHED})
        )
        logger.info(
            f"Finished session {session_id}: stars={result.stars} "
            f"accuracy={result.accuracy:.2f} advanced={advancement.advanced}"
        )
        return completed

    async def _grammar_updates(self, record: SessionRecord) -> list[GrammarScoreUpdate]:
        state = record.step_state
        grouped = defaultdict(list)
        for answer in [*state.grammar_drill.answers, *state.transfer.answers]:
            grouped[answer.question.grammar_id].append(answer)

        updates: dict[int, GrammarScoreUpdate] = {}
        for grammar_id, answers in grouped.items():
            current = await self.repo.get_grammar_state(grammar_id)
            updates[grammar_id] = calculate_grammar_update(grammar_id, answers, current)

        submissions = state.sentence.submissions
        if submissions:
            grammar_id = record.planned_grammar_id
            base = updates.get(grammar_id)
            if base is None:
                current = await self.repo.get_grammar_state(grammar_id)
                base = calculate_grammar_update(grammar_id, [], current)
            updates[grammar_id] = apply_sentence_outcome(
                base,
                passed_count=sum(1 for s in submissions if s.passed),
                review_penalty=any(not s.passed for s in submissions),
            )
        return list(updates.values())

    async def _vocab_updates(
        self, record: SessionRecord
    ) -> tuple[list[VocabScoreUpdate], int]:
        grouped = defaultdict(list)
        for answer in record.step_state.vocab.answers:
            grouped[answer.question.vocab_id].append(answer)

        updates = []
        new_blocking = 0
        for vocab_id, answers in grouped.items():
            current = await self.repo.get_vocab_state(vocab_id)
            update = calculate_vocab_update(
                vocab_id, answers, current, self.fast_threshold_ms
            )
            if update.should_block and not (current and current.is_blocking):
                new_blocking += 1
            updates.append(update)
        return updates, new_blocking

    # =========================================================================
    # Coach Summary
    # =========================================================================

    async def attach_coach_summary(self, session_id: int, summary: str) -> SessionRecord:
        """
        Replace the offline narrative of a completed session.

        The only mutation permitted after completion.

        Raises:
            InvalidStateError: If the session is not completed yet
        """
        record = await self.get_session(session_id)
        if record.status != SessionStatus.COMPLETED or record.result is None:
            raise InvalidStateError(f"Session {session_id} is not completed")

        result = record.result.model_copy(
            update={"coach": CoachSummary(source=CoachSource.LLM, summary=summary)}
        )
        logger.info(f"Attached coach summary to session {session_id}")
        return await self.repo.save_session(record.model_copy(update={"result": result}))
