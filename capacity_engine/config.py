"""
Configuration for the Capacity Engine

Loads settings from config.yaml and the environment, and holds the
business policy constants the engine computes with.
"""

import os
from dataclasses import dataclass
from typing import Optional

import yaml


DEFAULT_CONFIG_PATH = "config/config.yaml"


class Config:
    """Load configuration from config.yaml and environment."""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config = {}

        if os.path.exists(config_path):
            with open(config_path) as f:
                self.config = yaml.safe_load(f) or {}

        # Override with environment variables
        self._load_env()

    def _load_env(self):
        """Load configuration from environment variables."""
        env_mapping = {
            "SUPABASE_URL": ("supabase", "url"),
            "SUPABASE_KEY": ("supabase", "key"),
            "LOG_LEVEL": ("logging", "level"),
            "CAPACITY_WORKDAYS_PER_WEEK": ("policy", "workdays_per_week"),
            "CAPACITY_NO_DUE_DATE_WINDOW_DAYS": ("policy", "no_due_date_window_days"),
        }

        for env_var, (section, key) in env_mapping.items():
            value = os.getenv(env_var)
            if value:
                if section not in self.config:
                    self.config[section] = {}
                self.config[section][key] = value

    def get(self, section: str, key: str, default=None):
        """Get configuration value."""
        return (self.config.get(section) or {}).get(key, default)

    @property
    def supabase_url(self) -> Optional[str]:
        return self.get("supabase", "url")

    @property
    def supabase_key(self) -> Optional[str]:
        return self.get("supabase", "key")

    @property
    def log_level(self) -> str:
        return str(self.get("logging", "level", "INFO")).upper()

    @property
    def policy(self) -> dict:
        return self.config.get("policy") or {}


@dataclass(frozen=True)
class CapacityPolicy:
    """
    Business policy constants used by the engine.

    The defaults reproduce the dashboard's numbers: a five day work week
    for daily availability, a 90 day horizon for work with no due date,
    and a symmetric window of periods around today for each granularity.
    """
    workdays_per_week: int = 5
    no_due_date_window_days: int = 90
    period_window: tuple = (
        ("daily", 7),
        ("weekly", 4),
        ("monthly", 3),
        ("quarterly", 2),
    )
    done_task_statuses: frozenset = frozenset({"done", "complete"})
    complete_project_statuses: frozenset = frozenset({"complete"})

    def __post_init__(self):
        # Accepts a mapping or pairs; stored as (granularity, size) pairs
        window = dict(self.period_window)
        object.__setattr__(self, "period_window", tuple(
            (str(name), int(size)) for name, size in window.items()
        ))
        if self.workdays_per_week < 1:
            raise ValueError("workdays_per_week must be at least 1")
        if self.no_due_date_window_days < 1:
            raise ValueError("no_due_date_window_days must be at least 1")

    def window_for(self, granularity: str) -> int:
        """Number of periods shown on each side of the current one."""
        try:
            return dict(self.period_window)[granularity]
        except KeyError:
            raise ValueError(f"Unknown granularity: {granularity}") from None

    def is_task_done(self, status: Optional[str]) -> bool:
        return (status or "").lower() in self.done_task_statuses

    def is_project_complete(self, status: Optional[str]) -> bool:
        return (status or "").lower() in self.complete_project_statuses

    @classmethod
    def from_config(cls, config: Config) -> "CapacityPolicy":
        """Build a policy from the `policy` section, keeping defaults for anything unset."""
        section = config.policy
        defaults = cls()

        window = dict(defaults.period_window)
        window.update({k: int(v) for k, v in (section.get("period_window") or {}).items()})

        return cls(
            workdays_per_week=int(section.get("workdays_per_week", defaults.workdays_per_week)),
            no_due_date_window_days=int(
                section.get("no_due_date_window_days", defaults.no_due_date_window_days)
            ),
            period_window=window,
        )
