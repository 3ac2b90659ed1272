"""
Learning Engine Policy Constants

Scheduling, scoring and advancement constants. These are fixed policy and
intentionally not exposed through Settings.
"""

# ===========================================
# Interval Scheduling
# ===========================================

EASE_MIN = 1.3
EASE_RANGE = 1.2  # ease spans [1.3, 2.5]

GRADE_MAX_INTERVAL_DAYS = 60
GRADE_SECOND_INTERVAL_DAYS = 3
GRADE_BASE_DAYS = 3

VOCAB_MAX_INTERVAL_DAYS = 45
VOCAB_BASE_DAYS = 2
VOCAB_LOW_STRENGTH = 30
VOCAB_MID_STRENGTH = 50
VOCAB_REP_STRENGTH_STEP = 20

MS_PER_DAY = 24 * 60 * 60 * 1000

# ===========================================
# Scoring
# ===========================================

METRIC_MIN = 0
METRIC_MAX = 100

GRAMMAR_CORRECT_DELTA = 10
GRAMMAR_WRONG_DELTA = -4

VOCAB_CORRECT_DELTA = 2
VOCAB_WRONG_DELTA = -2
VOCAB_FAST_BONUS = 1
VOCAB_BLOCKING_WRONG_COUNT = 3

SENTENCE_MIN_HITS_FOR_PASS = 3
SENTENCE_PASS_HIT_RATE = 0.7
SENTENCE_PASS_GRAMMAR_BONUS = 3
SENTENCE_PENALTY_REVIEW_DAYS = 1

# (minimum average score, stars), checked top-down
STAR_BANDS = ((0.95, 5), (0.85, 4), (0.70, 3), (0.50, 2), (0.30, 1))

LEVEL_PAUSE_ACCURACY = 0.6
LEVEL_HISTORY_DAYS = 2
LEVEL_MIN = 1
LEVEL_MAX = 10

# ===========================================
# Advancement
# ===========================================

ADVANCE_MASTERY = 80
LESSON_VOCAB_ACCURACY = 0.85
LESSON_SENTENCE_PASS_RATE = 0.70
LESSON_RECENT_SESSIONS = 7

# Achievement counting only; lower than the advancement bar
ACHIEVEMENT_MASTERY = 50

# ===========================================
# Daily Plan
# ===========================================

PLAN_STEP1_DRILLS = 2
PLAN_STEP2_DRILLS = 2
PLAN_VOCAB_ITEMS = 12
PLAN_SENTENCES = 2
PLAN_LEVEL_SPREAD = 1
SENTENCE_STYLE_PREFERENCE = ("gal", "textbook")

# ===========================================
# Review Queue
# ===========================================

REVIEW_AGAIN_DELTA = -2
REVIEW_GOOD_DELTA = 2
REVIEW_EASY_DELTA = 4
REVIEW_EASY_INTERVAL_MULTIPLIER = 1.5
