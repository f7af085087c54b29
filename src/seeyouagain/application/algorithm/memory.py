"""
Memory Update Module.

Implements the stability and difficulty updates after a grading event.

Key principles:
- Successful recall grows stability, more so when recall was unlikely (low R)
- A lapse never increases stability
- Difficulty drifts with the grade and reverts toward the Good baseline

Every formula is a pure function of its numeric inputs and the weights.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from seeyouagain.application.algorithm.retrievability import forgetting_curve
from seeyouagain.application.convert import to_grade
from seeyouagain.domain.constants import D_MAX, D_MIN, INIT_S_MIN, S_MIN
from seeyouagain.domain.errors import InvalidGradeError
from seeyouagain.domain.models import MemoryState, Rating

if TYPE_CHECKING:
    from seeyouagain.application.config import Parameters


def constrain_difficulty(difficulty: float) -> float:
    """Clamp difficulty to [1, 10]."""
    return min(max(difficulty, D_MIN), D_MAX)


def _round8(value: float) -> float:
    return round(value, 8)


class MemoryModel:
    """
    FSRS memory formulas bound to one parameter snapshot.

    Stateless and side-effect free.
    """

    def __init__(self, parameters: Parameters):
        self.parameters = parameters
        self.w = parameters.w

    # ---------- Initial state ----------

    def init_stability(self, grade: Rating) -> float:
        """
        Stability after the first grade: S0(G) = w[G-1], floored at 0.1.
        """
        g = to_grade(grade)
        return max(self.w[g - 1], INIT_S_MIN)

    def init_difficulty(self, grade: Rating) -> float:
        """
        Difficulty after the first grade: D0(G) = w4 - e^((G-1) * w5) + 1, in [1, 10].
        """
        g = to_grade(grade)
        return _round8(constrain_difficulty(self.w[4] - math.exp((g - 1) * self.w[5]) + 1))

    # ---------- Difficulty ----------

    def linear_damping(self, delta_d: float, old_d: float) -> float:
        """
        Scale an improving (negative) difficulty delta by (10 - D) / 9.

        Deltas that raise difficulty pass through unchanged.
        """
        if delta_d < 0:
            return delta_d * (10 - old_d) / 9
        return delta_d

    def mean_reversion(self, init: float, current: float) -> float:
        """w7 * init + (1 - w7) * current."""
        return self.w[7] * init + (1 - self.w[7]) * current

    def next_difficulty(self, difficulty: float, grade: Rating) -> float:
        """
        Difficulty after a grade.

            delta_d = -w6 * (G - 3)
            next_d  = D + linear_damping(delta_d, D)
            D'      = w7 * D0(Good) + (1 - w7) * next_d, clamped to [1, 10]
        """
        g = to_grade(grade)
        delta_d = -self.w[6] * (g - 3)
        next_d = difficulty + self.linear_damping(delta_d, difficulty)
        reverted = self.mean_reversion(self.init_difficulty(Rating.Good), next_d)
        return _round8(constrain_difficulty(reverted))

    # ---------- Stability ----------

    def next_recall_stability(
        self,
        difficulty: float,
        stability: float,
        retrievability: float,
        grade: Rating,
    ) -> float:
        """
        Stability after a successful recall (Hard, Good or Easy).

            S'r = S * (e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1)
                       * w15 (if Hard) * w16 (if Easy) + 1)
        """
        g = to_grade(grade)
        if g == Rating.Again:
            raise InvalidGradeError("Use next_forget_stability for Again")

        s = max(stability, S_MIN)
        hard_penalty = self.w[15] if g == Rating.Hard else 1.0
        easy_bonus = self.w[16] if g == Rating.Easy else 1.0
        growth = (
            math.exp(self.w[8])
            * (11 - difficulty)
            * math.pow(s, -self.w[9])
            * (math.exp(self.w[10] * (1 - retrievability)) - 1)
            * hard_penalty
            * easy_bonus
        )
        return max(_round8(s * (growth + 1)), S_MIN)

    def next_forget_stability(
        self,
        difficulty: float,
        stability: float,
        retrievability: float,
    ) -> float:
        """
        Stability after a lapse.

            S'f = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))

        Capped at S / e^(w17 * w18) in short-term mode (at S otherwise) so a
        lapse never increases stability, and floored at S_MIN.
        """
        new_s = (
            self.w[11]
            * math.pow(max(difficulty, D_MIN), -self.w[12])
            * (math.pow(stability + 1, self.w[13]) - 1)
            * math.exp(self.w[14] * (1 - retrievability))
        )
        if self.parameters.enable_short_term:
            cap = stability / math.exp(self.w[17] * self.w[18])
        else:
            cap = stability
        return max(_round8(min(new_s, cap)), S_MIN)

    def next_short_term_stability(self, stability: float, grade: Rating) -> float:
        """
        Stability after a same-session grade in Learning/Relearning.

            S's = S * e^(w17 * (G - 3 + w18))
        """
        g = to_grade(grade)
        return max(_round8(stability * math.exp(self.w[17] * (g - 3 + self.w[18]))), S_MIN)

    # ---------- Combined ----------

    def next_state(
        self,
        memory_state: MemoryState | None,
        elapsed_days: float,
        grade: Rating,
    ) -> MemoryState:
        """
        Memory state after a grade, given the gap since the previous review.

        A None (or all-zero) memory state is initialised from the grade.
        Otherwise Again applies the lapse formula and Hard/Good/Easy the
        recall formula, with difficulty updated by next_difficulty.

        Raises:
            InvalidGradeError: If grade is Manual or unknown.
            ValueError: If elapsed_days is negative or the memory state is invalid.
        """
        g = to_grade(grade)
        if elapsed_days < 0:
            raise ValueError(f"Invalid elapsed days: {elapsed_days}")

        if memory_state is None or (
            memory_state.stability == 0 and memory_state.difficulty == 0
        ):
            return MemoryState(
                stability=self.init_stability(g),
                difficulty=self.init_difficulty(g),
            )

        d, s = memory_state.difficulty, memory_state.stability
        if d < D_MIN or d > D_MAX or s < S_MIN:
            raise ValueError(f"Invalid memory state: stability={s}, difficulty={d}")

        r = forgetting_curve(elapsed_days, s)
        if g == Rating.Again:
            new_s = self.next_forget_stability(d, s, r)
        else:
            new_s = self.next_recall_stability(d, s, r, g)

        return MemoryState(stability=new_s, difficulty=self.next_difficulty(d, g))
