"""
Configuration settings for retention-core.

Uses Pydantic Settings for environment variable management with .env file support.
Every scheduling tunable has a default so the engine never sees partial policy.
"""
from __future__ import annotations

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from retention.core.policy import PolicyConfig, PriorityWeights


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETENTION_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    state_db_path: Path = Field(
        default=Path.home() / ".retention" / "items.db",
        description="SQLite file holding item state and attempt log",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum loguru level written to stderr",
    )

    # ========================================
    # Scheduling (stability + intervals)
    # ========================================
    target_r: float = Field(
        default=0.85,
        description="Retrievability at which the next review is scheduled",
    )
    r_near: float = Field(
        default=0.90,
        description="Retrievability under which an item counts as near-due",
    )
    alpha_hard: float = Field(default=0.12, description="Growth rate for 'hard' recalls")
    alpha_good: float = Field(default=0.22, description="Growth rate for 'good' recalls")
    alpha_easy: float = Field(default=0.30, description="Growth rate for 'easy' recalls")
    gamma_fail: float = Field(
        default=0.50,
        description="Stability multiplier applied on a failed attempt",
    )
    k_long_gap: float = Field(
        default=0.10,
        description="Growth-rate bonus when recall succeeds after a long gap",
    )
    long_gap_margin: float = Field(
        default=0.25,
        description="Fraction by which the planned interval must be exceeded to count as a long gap",
    )
    min_interval_days: float = Field(default=1.0, description="Shortest review interval (days)")
    cap_s_days: float = Field(default=365.0, description="Stability / interval ceiling (days)")
    s_default_days: float = Field(default=1.0, description="Stability of a brand new item (days)")
    max_hot_days: float = Field(
        default=3.0,
        description="Interval ceiling for hot-topic items (days)",
    )
    fail_review_delay_days: float = Field(
        default=1.0,
        description="Interval used after a failed attempt (days)",
    )

    # ─── Response time ──────────────────────────────────────────────────────────
    time_target_sec: float = Field(
        default=120.0,
        description="Global response-time target when an item has none",
    )
    rt_fast: float = Field(default=0.50, description="Fast threshold as a fraction of target")
    rt_slow: float = Field(default=1.50, description="Slow threshold as a fraction of target")
    k_rt_bonus: float = Field(default=0.06, description="Growth-rate bonus for fast answers")
    k_rt_slow_penalty: float = Field(
        default=0.50,
        description="Fraction of the growth rate removed for slow answers",
    )

    # ─── Exam proximity ─────────────────────────────────────────────────────────
    exam_date: date | None = Field(default=None, description="Exam date (YYYY-MM-DD)")
    conservative_factor_on_exam_day: float = Field(
        default=0.5,
        description="Interval multiplier on the exam day",
    )
    conservative_factor_on_exam_eve: float = Field(
        default=0.7,
        description="Interval multiplier on the day before the exam",
    )

    # ========================================
    # Mastery
    # ========================================
    max_gain_per_session: float = Field(
        default=15.0,
        description="Largest mastery gain a single correct attempt can produce",
    )
    error_penalty_level: float = Field(
        default=0.2,
        description="Fraction of mastery lost on a failed attempt",
    )
    diminishing_returns: bool = Field(
        default=True,
        description="Shrink mastery gains as the score approaches 100",
    )

    # ========================================
    # Urgency + priority
    # ========================================
    critical_domain_threshold: float = Field(
        default=40.0,
        description="Domain under which a due item is flagged CRITICO",
    )
    max_lateness_days: float = Field(
        default=30.0,
        description="Overdue days after which an item is always CRITICO",
    )
    weight_is_hot: float = Field(default=0.5, description="Priority weight for hot topics")
    weight_is_fundamental: float = Field(default=0.3, description="Priority weight for fundamentals")
    weight_is_critical: float = Field(default=0.4, description="Priority weight for the critical flag")
    weight_recent_error: float = Field(default=0.3, description="Priority weight for a recent error")
    weight_low_s: float = Field(default=0.2, description="Priority weight for low stability")

    # ========================================
    # Session queue
    # ========================================
    session_size: int = Field(default=20, description="Items per study session")
    new_content_limit: float = Field(
        default=0.1,
        description="Largest fraction of a session given to never-reviewed items",
    )
    critical_stability_days: float = Field(
        default=10.0,
        description="Stability under which an item joins the critical session",
    )
    exam_hot_multiplier: float = Field(
        default=1.5,
        description="Exam-mode priority multiplier for hot topics",
    )

    def to_policy(self) -> PolicyConfig:
        """Build the immutable policy snapshot handed to the engine."""
        return PolicyConfig(
            target_r=self.target_r,
            r_near=self.r_near,
            alpha_hard=self.alpha_hard,
            alpha_good=self.alpha_good,
            alpha_easy=self.alpha_easy,
            gamma_fail=self.gamma_fail,
            rt_fast=self.rt_fast,
            rt_slow=self.rt_slow,
            k_rt_bonus=self.k_rt_bonus,
            k_rt_slow_penalty=self.k_rt_slow_penalty,
            k_long_gap=self.k_long_gap,
            long_gap_margin=self.long_gap_margin,
            min_interval_days=self.min_interval_days,
            cap_S_days=self.cap_s_days,
            S_default_days=self.s_default_days,
            max_hot_days=self.max_hot_days,
            time_target_sec=self.time_target_sec,
            fail_review_delay_days=self.fail_review_delay_days,
            max_lateness_days=self.max_lateness_days,
            critical_domain_threshold=self.critical_domain_threshold,
            conservative_factor_on_exam_day=self.conservative_factor_on_exam_day,
            conservative_factor_on_exam_eve=self.conservative_factor_on_exam_eve,
            exam_date=self.exam_date,
            max_gain_per_session=self.max_gain_per_session,
            error_penalty_level=self.error_penalty_level,
            diminishing_returns=self.diminishing_returns,
            critical_stability_days=self.critical_stability_days,
            exam_hot_multiplier=self.exam_hot_multiplier,
            weights=PriorityWeights(
                is_hot=self.weight_is_hot,
                is_fundamental=self.weight_is_fundamental,
                is_critical=self.weight_is_critical,
                recent_error=self.weight_recent_error,
                low_s=self.weight_low_s,
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
