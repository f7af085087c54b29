"""Centralized constants for the seeyouagain scheduling engine.

All magic numbers and default parameter values live here so every layer
imports from a single source of truth.
"""

from .models import Rating

# ---------- Forgetting curve ----------
DECAY = -0.5
# 0.9 ** (1 / DECAY) - 1, so that R(t=S, S) == 0.9
FACTOR = 19 / 81

# ---------- Memory state bounds ----------
S_MIN = 0.01
INIT_S_MIN = 0.1
INIT_S_MAX = 100.0
D_MIN = 1.0
D_MAX = 10.0

# ---------- Default parameters ----------
DEFAULT_REQUEST_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 36500
DEFAULT_ENABLE_FUZZ = False
DEFAULT_ENABLE_SHORT_TERM = True

DEFAULT_W: tuple[float, ...] = (
    0.40255,
    1.18385,
    3.173,
    15.69105,
    7.1949,
    0.5345,
    1.4604,
    0.0046,
    1.54575,
    0.1192,
    1.01925,
    1.9395,
    0.11,
    0.29605,
    2.2698,
    0.2315,
    2.9898,
    0.51655,
    0.6621,
)
WEIGHT_COUNT = len(DEFAULT_W)
LEGACY_WEIGHT_COUNT = 17

# Accepted (min, max) per weight. Values outside are rejected, not clamped.
CLAMP_PARAMETERS: tuple[tuple[float, float], ...] = (
    (S_MIN, INIT_S_MAX),  # w0  initial stability, Again
    (S_MIN, INIT_S_MAX),  # w1  initial stability, Hard
    (S_MIN, INIT_S_MAX),  # w2  initial stability, Good
    (S_MIN, INIT_S_MAX),  # w3  initial stability, Easy
    (1.0, 10.0),  # w4  initial difficulty base
    (0.001, 4.0),  # w5  initial difficulty slope
    (0.001, 4.0),  # w6  difficulty delta
    (0.001, 0.75),  # w7  mean reversion
    (0.0, 4.5),  # w8  recall stability scale
    (0.0, 0.8),  # w9  recall stability decay
    (0.001, 3.5),  # w10 recall retrievability gain
    (0.001, 5.0),  # w11 forget stability scale
    (0.001, 0.25),  # w12 forget difficulty exponent
    (0.001, 0.9),  # w13 forget stability exponent
    (0.0, 4.0),  # w14 forget retrievability gain
    (0.0, 1.0),  # w15 hard penalty
    (1.0, 6.0),  # w16 easy bonus
    (0.0, 2.0),  # w17 short-term scale
    (0.0, 2.0),  # w18 short-term offset
)

# ---------- Fuzz ----------
FUZZ_MIN_INTERVAL = 2.5

# (start, end, factor): the fuzz band grows by `factor` per day inside each range.
FUZZ_RANGES: tuple[tuple[float, float, float], ...] = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)

# ---------- Short-term steps (minutes) ----------
NEW_STEP_MINUTES = {
    Rating.Again: 1,
    Rating.Hard: 5,
    Rating.Good: 10,
}
LEARNING_STEP_MINUTES = {
    Rating.Again: 5,
    Rating.Hard: 10,
}
RELEARNING_AGAIN_MINUTES = 5

# Grade that lets a New item skip Learning in short-term mode.
SHORT_TERM_GRADUATING_GRADE = Rating.Easy

# ---------- Time ----------
SECONDS_PER_DAY = 86400
