"""
Scheduling Policy.

Immutable snapshot of every tunable the engine reads. Built by the settings
layer (``config.Settings.to_policy``) or directly in tests, then threaded
through each engine call. Validation happens here, once, so the engine can
assume a complete and consistent policy.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PriorityWeights(BaseModel):
    """Weights for the due-queue priority score."""

    model_config = ConfigDict(frozen=True)

    is_hot: float = Field(default=0.5, ge=0)
    is_fundamental: float = Field(default=0.3, ge=0)
    is_critical: float = Field(default=0.4, ge=0)
    recent_error: float = Field(default=0.3, ge=0)
    low_s: float = Field(default=0.2, ge=0)


class PolicyConfig(BaseModel):
    """
    Read-only policy for stability growth, scheduling, mastery and urgency.

    Defaults mirror the production settings of the study app this engine
    was extracted from.
    """

    model_config = ConfigDict(frozen=True)

    # Retention targets
    target_r: float = Field(default=0.85, gt=0, lt=1)
    r_near: float = Field(default=0.90, gt=0, lt=1)

    # Stability growth
    alpha_hard: float = Field(default=0.12, ge=0)
    alpha_good: float = Field(default=0.22, ge=0)
    alpha_easy: float = Field(default=0.30, ge=0)
    gamma_fail: float = Field(default=0.50, gt=0, lt=1)
    k_long_gap: float = Field(default=0.10, ge=0)
    long_gap_margin: float = Field(default=0.25, ge=0)

    # Response time
    time_target_sec: float = Field(default=120.0, gt=0)
    rt_fast: float = Field(default=0.50, gt=0)
    rt_slow: float = Field(default=1.50, gt=0)
    k_rt_bonus: float = Field(default=0.06, ge=0)
    k_rt_slow_penalty: float = Field(default=0.50, ge=0, le=1)

    # Interval bounds
    min_interval_days: float = Field(default=1.0, gt=0)
    cap_S_days: float = Field(default=365.0, gt=0)
    S_default_days: float = Field(default=1.0, gt=0)
    max_hot_days: float = Field(default=3.0, gt=0)
    fail_review_delay_days: float = Field(default=1.0, gt=0)

    # Exam proximity
    exam_date: date | None = None
    conservative_factor_on_exam_day: float = Field(default=0.5, gt=0, le=1)
    conservative_factor_on_exam_eve: float = Field(default=0.7, gt=0, le=1)

    # Mastery
    max_gain_per_session: float = Field(default=15.0, ge=0, le=100)
    error_penalty_level: float = Field(default=0.2, ge=0, le=1)
    diminishing_returns: bool = True

    # Urgency
    critical_domain_threshold: float = Field(default=40.0, ge=0, le=100)
    max_lateness_days: float = Field(default=30.0, ge=0)
    weights: PriorityWeights = Field(default_factory=PriorityWeights)

    # Session queue
    critical_stability_days: float = Field(default=10.0, gt=0)
    exam_hot_multiplier: float = Field(default=1.5, ge=1)

    @model_validator(mode="after")
    def _check_consistency(self) -> PolicyConfig:
        if not self.alpha_hard < self.alpha_good < self.alpha_easy:
            raise ValueError("growth rates must satisfy alpha_hard < alpha_good < alpha_easy")
        if self.rt_fast >= self.rt_slow:
            raise ValueError("rt_fast must be lower than rt_slow")
        if not self.min_interval_days <= self.S_default_days <= self.cap_S_days:
            raise ValueError(
                "S_default_days must lie within [min_interval_days, cap_S_days]"
            )
        if self.max_hot_days < self.min_interval_days:
            raise ValueError("max_hot_days must not be below min_interval_days")
        return self

    def exam_factor_for(self, day: date) -> float:
        """Interval compression factor that applies on ``day`` (1.0 when none)."""
        if self.exam_date is None:
            return 1.0
        days_left = (self.exam_date - day).days
        if days_left == 0:
            return self.conservative_factor_on_exam_day
        if days_left == 1:
            return self.conservative_factor_on_exam_eve
        return 1.0


DEFAULT_POLICY = PolicyConfig()
