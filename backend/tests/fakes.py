"""
In-Memory Test Doubles

Implementations of the Clock, LearningRepository and ContentLookup
contracts backed by plain dicts, plus a small sample content dataset.
"""

from datetime import date, timedelta
from typing import Optional

from galking.enums.learning import LevelChange, SessionStatus, SessionStep
from galking.models.content import ContentDataset
from galking.models.learning import (
    AchievementUnlock,
    AnswerRecord,
    GrammarDrillStep,
    GrammarMasteryState,
    GrammarOutcome,
    QuestionRef,
    SentenceOutcome,
    SentenceStep,
    SessionRecord,
    SessionResult,
    StepState,
    StepTiming,
    TransferOutcome,
    TransferStep,
    UserProgressState,
    VocabOutcome,
    VocabStep,
    VocabStrengthState,
)
from galking.services.learning.constants import MS_PER_DAY

BASE_NOW_MS = 1_772_000_000_000
BASE_TODAY = date(2026, 3, 2)


class FakeClock:
    """Clock with a manually advanced time."""

    def __init__(self, now_ms: int = BASE_NOW_MS, today: date = BASE_TODAY):
        self._now_ms = now_ms
        self._today = today

    def now_ms(self) -> int:
        return self._now_ms

    def today(self) -> date:
        return self._today

    def advance_ms(self, ms: int) -> None:
        self._now_ms += ms

    def advance_days(self, days: int) -> None:
        self._now_ms += days * MS_PER_DAY
        self._today += timedelta(days=days)


class InMemoryLearningRepository:
    """LearningRepository backed by dicts."""

    def __init__(self):
        self.progress: Optional[UserProgressState] = None
        self.grammar: dict[int, GrammarMasteryState] = {}
        self.vocab: dict[int, VocabStrengthState] = {}
        self.sessions: dict[int, SessionRecord] = {}
        self.achievements: dict[str, AchievementUnlock] = {}
        self._next_session_id = 1

    async def get_progress(self) -> Optional[UserProgressState]:
        return self.progress

    async def save_progress(self, progress: UserProgressState) -> UserProgressState:
        self.progress = progress
        return progress

    async def get_grammar_state(self, grammar_id: int) -> Optional[GrammarMasteryState]:
        return self.grammar.get(grammar_id)

    async def list_grammar_states(self) -> list[GrammarMasteryState]:
        return [self.grammar[k] for k in sorted(self.grammar)]

    async def save_grammar_state(self, state: GrammarMasteryState) -> GrammarMasteryState:
        self.grammar[state.grammar_id] = state
        return state

    async def get_vocab_state(self, vocab_id: int) -> Optional[VocabStrengthState]:
        return self.vocab.get(vocab_id)

    async def list_vocab_states(self) -> list[VocabStrengthState]:
        return [self.vocab[k] for k in sorted(self.vocab)]

    async def save_vocab_state(self, state: VocabStrengthState) -> VocabStrengthState:
        self.vocab[state.vocab_id] = state
        return state

    async def get_session(self, session_id: int) -> Optional[SessionRecord]:
        return self.sessions.get(session_id)

    async def list_sessions_by_date(self, day: date) -> list[SessionRecord]:
        return [s for _, s in sorted(self.sessions.items()) if s.date == day]

    async def create_session(self, record: SessionRecord) -> SessionRecord:
        record = record.model_copy(update={"session_id": self._next_session_id})
        self.sessions[record.session_id] = record
        self._next_session_id += 1
        return record

    async def save_session(self, record: SessionRecord) -> SessionRecord:
        self.sessions[record.session_id] = record
        return record

    async def list_completed_sessions(
        self,
        lesson_id: Optional[int] = None,
        since: Optional[date] = None,
        before: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[SessionRecord]:
        sessions = [
            s
            for s in self.sessions.values()
            if s.status == SessionStatus.COMPLETED
            and (lesson_id is None or s.planned_lesson_id == lesson_id)
            and (since is None or s.date >= since)
            and (before is None or s.date < before)
        ]
        sessions.sort(key=lambda s: (s.date, s.session_id), reverse=True)
        return sessions[:limit] if limit is not None else sessions

    async def count_completed_sessions(self) -> int:
        return sum(1 for s in self.sessions.values() if s.status == SessionStatus.COMPLETED)

    async def list_achievements(self) -> list[AchievementUnlock]:
        return sorted(self.achievements.values(), key=lambda u: u.unlocked_at)

    async def add_achievement(self, unlock: AchievementUnlock) -> bool:
        if unlock.achievement_id in self.achievements:
            return False
        self.achievements[unlock.achievement_id] = unlock
        return True


class InMemoryContentLookup:
    """ContentLookup over a ContentDataset."""

    def __init__(self, dataset: ContentDataset):
        self.lessons = {l.lesson_id: l for l in dataset.lessons}
        self.grammar = {g.grammar_id: g for g in dataset.grammar_points}
        self.vocab = {v.vocab_id: v for v in dataset.vocab}
        self.packs = {p.pack_id: p for p in dataset.vocab_packs}
        self.sentences = {s.sentence_id: s for s in dataset.sentences}

    async def get_lesson(self, lesson_id):
        return self.lessons.get(lesson_id)

    async def list_lessons(self):
        return sorted(self.lessons.values(), key=lambda l: l.order_index)

    async def get_grammar_point(self, grammar_id):
        grammar = self.grammar.get(grammar_id)
        if grammar is None:
            return None
        return grammar.model_copy(
            update={
                "drills": [
                    d.model_copy(update={"grammar_id": grammar_id}) for d in grammar.drills
                ]
            }
        )

    async def get_vocab(self, vocab_id):
        return self.vocab.get(vocab_id)

    async def get_vocab_pack(self, pack_id):
        return self.packs.get(pack_id)

    async def get_sentence(self, sentence_id):
        return self.sentences.get(sentence_id)

    async def list_sentences(self, grammar_id=None, lesson_id=None):
        return [
            s
            for _, s in sorted(self.sentences.items())
            if (grammar_id is None or grammar_id in s.grammar_ids)
            and (lesson_id is None or s.lesson_id == lesson_id)
        ]


# ============================================================================
# Sample Content
# ============================================================================

# Correct option ids of the pool drills in SAMPLE_CONTENT
DRILL_ANSWERS = {
    "g101_d1": "a",
    "g101_d2": "a",  # judge, normalized: true -> "a"
    "g101_d3": "b",
    "g101_d4": "食べて",  # fill drill, no option ids
    "g102_d1": "c",
    "g201_d1": "a",
    "g201_d2": "b",
}


def _choice(drill_id: str, correct_id: str, stem: str = "Pick one") -> dict:
    return {
        "drill_id": drill_id,
        "type": "choice",
        "stem": stem,
        "options": [{"id": i, "text": f"option {i}"} for i in "abcd"],
        "correct_id": correct_id,
        "explanation": f"{drill_id} explanation",
    }


SAMPLE_CONTENT = {
    "lessons": [
        {
            "lesson_id": 1,
            "title": "Lesson 1",
            "order_index": 1,
            "grammar_ids": [101, 102],
            "vocab_pack_ids": [1],
        },
        {
            "lesson_id": 2,
            "title": "Lesson 2",
            "order_index": 2,
            "grammar_ids": [201],
            "vocab_pack_ids": [2],
        },
    ],
    "grammar_points": [
        {
            "grammar_id": 101,
            "lesson_id": 1,
            "name": "〜ている",
            "core_rule": "Describes an ongoing action or a resulting state",
            "examples": [
                {"text": "本を読んでいる。", "hint": "reading a book"},
                {"text": "窓が開いている。", "hint": "the window is open"},
            ],
            "counter_examples": [{"text": "× 本を読むている。", "hint": "Use the te-form"}],
            "drills": [
                _choice("g101_d1", "a"),
                {
                    "drill_id": "g101_d2",
                    "type": "judge",
                    "stem": "本を読んでいる。",
                    "correct_answer": "true",
                    "explanation": "Correct te-form",
                },
                _choice("g101_d3", "b"),
                {
                    "drill_id": "g101_d4",
                    "type": "fill",
                    "stem": "ご飯を＿＿いる。",
                    "correct_answer": "食べて",
                },
            ],
        },
        {
            "grammar_id": 102,
            "lesson_id": 1,
            "name": "〜たい",
            "core_rule": "Expresses the speaker's wish",
            "examples": [{"text": "水が飲みたい。"}],
            "counter_examples": [{"text": "× 水が飲むたい。", "hint": "Use the stem"}],
            "drills": [_choice("g102_d1", "c")],
        },
        {
            "grammar_id": 201,
            "lesson_id": 2,
            "name": "〜てもいい",
            "core_rule": "Gives permission",
            "drills": [_choice("g201_d1", "a"), _choice("g201_d2", "b")],
        },
    ],
    "vocab": [
        {"vocab_id": 1, "surface": "本", "reading": "ほん", "meanings": ["book"]},
        {"vocab_id": 2, "surface": "水", "reading": "みず", "meanings": ["water"]},
        {"vocab_id": 3, "surface": "窓", "reading": "まど", "meanings": ["window"]},
        {"vocab_id": 4, "surface": "猫", "reading": "ねこ", "meanings": ["cat"]},
        {"vocab_id": 5, "surface": "犬", "reading": "いぬ", "meanings": ["dog"]},
    ],
    "vocab_packs": [
        {"pack_id": 1, "name": "Lesson 1 words", "lesson_id": 1, "vocab_ids": [1, 2, 3]},
        {"pack_id": 2, "name": "Lesson 2 words", "lesson_id": 2, "vocab_ids": [4, 5]},
    ],
    "sentences": [
        {
            "sentence_id": 1001,
            "text": "彼は本を読んでいる。",
            "style_tag": "gal",
            "lesson_id": 1,
            "level": 1,
            "grammar_ids": [101],
            "key_points": [{"id": f"kp{i}", "label": f"point {i}"} for i in range(1, 6)],
        },
        {
            "sentence_id": 1002,
            "text": "窓が開いている。",
            "style_tag": "textbook",
            "lesson_id": 1,
            "level": 1,
            "grammar_ids": [101],
            "key_points": [{"id": "kp1", "label": "point 1"}],
        },
        {
            "sentence_id": 1003,
            "text": "雨が降っている。",
            "style_tag": "gal",
            "lesson_id": 1,
            "level": 2,
            "grammar_ids": [101],
            "key_points": [
                {"id": "kp1", "label": "point 1"},
                {"id": "kp2", "label": "point 2"},
            ],
        },
        {
            "sentence_id": 2001,
            "text": "入ってもいい。",
            "style_tag": "textbook",
            "lesson_id": 2,
            "level": 1,
            "grammar_ids": [201],
            "key_points": [{"id": "kp1", "label": "point 1"}],
        },
    ],
}


def sample_dataset() -> ContentDataset:
    return ContentDataset.model_validate(SAMPLE_CONTENT)


# ============================================================================
# Answer Builders
# ============================================================================


def make_answer(
    correct: bool,
    grammar_id: int = 101,
    drill_id: str = "g101_d1",
    time_ms: int = 0,
) -> AnswerRecord:
    """Grammar drill answer with the given correctness."""
    return AnswerRecord(
        question=QuestionRef.drill(grammar_id, drill_id),
        selected_id="a" if correct else "z",
        correct_id="a",
        is_correct=correct,
        time_ms=time_ms,
    )


def make_vocab_answer(correct: bool, vocab_id: int = 1, time_ms: int = 5000) -> AnswerRecord:
    """Vocab answer with the given correctness and reaction time."""
    return AnswerRecord(
        question=QuestionRef.vocab(vocab_id),
        selected_id=str(vocab_id) if correct else "0",
        correct_id=str(vocab_id),
        is_correct=correct,
        time_ms=time_ms,
    )


def make_result(
    grammar_correct: int = 4,
    grammar_total: int = 5,
    vocab_accuracy: float = 0.9,
    sentence_passed: int = 2,
    sentence_total: int = 2,
    stars: int = 3,
    level_change: LevelChange = LevelChange.UP,
) -> SessionResult:
    """Session result with the given outcome figures (transfer left empty)."""
    return SessionResult(
        stars=stars,
        accuracy=grammar_correct / grammar_total if grammar_total else 0.0,
        grammar=GrammarOutcome(correct=grammar_correct, total=grammar_total),
        transfer=TransferOutcome(),
        vocab=VocabOutcome(correct=0, total=0, accuracy=vocab_accuracy),
        sentence=SentenceOutcome(passed=sentence_passed, total=sentence_total),
        level_change=level_change,
    )


def empty_step_state(step: SessionStep = SessionStep.FINISHED) -> StepState:
    return StepState(
        current_step=step,
        grammar_drill=GrammarDrillStep(),
        transfer=TransferStep(),
        vocab=VocabStep(),
        sentence=SentenceStep(),
        timing=StepTiming(started_at=0),
    )


def completed_session(
    day: date,
    result: SessionResult,
    lesson_id: int = 1,
    grammar_id: int = 101,
) -> SessionRecord:
    """A completed session record carrying `result`."""
    return SessionRecord(
        date=day,
        planned_lesson_id=lesson_id,
        planned_grammar_id=grammar_id,
        planned_level=1,
        step_state=empty_step_state(),
        result=result,
        status=SessionStatus.COMPLETED,
        stars=result.stars,
        started_at=0,
        finished_at=0,
    )
