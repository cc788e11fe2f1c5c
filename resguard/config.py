#=============================================================================
# File        : resguard/config.py
# Project     : ResGuard v1.0
# Component   : Configuration - ResGuard Configuration Dataclass
# Description : Central configuration with validation and env overrides for
#               the cache, sampling and collection knobs.
#               • Validation & coercion for safe values
#               • Environment variable overrides for ops
#               • Kill-switch and immutable runtime config
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Dataclasses
# Standards   : PEP 8, Type Hints, Immutable Configuration
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: dataclasses, typing, os
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_config.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

MIB = 1024 * 1024

# Floors applied during validation
_MIN_INTERVAL_S = 0.01
_MIN_SAMPLES = 10


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None: return default
    return v.strip().lower() in {"1", "true", "yes", "on"}

def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None: return default
    try:
        return float(v)
    except ValueError:
        return default

def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None: return default
    try:
        return int(v)
    except ValueError:
        return default


@dataclass(frozen=True)
class ResGuardConfig:
    """
    ResGuard runtime configuration.

    Defaults mirror the launcher host:
      - 50 MiB icon cache, evicted down to 80% when exceeded
      - memory sample every minute, optimize cycle every 10 minutes
      - explicit GC at most once per 5 minutes
    """
    cache_root: Optional[str] = None
    max_cache_bytes: int = 50 * MIB
    sample_interval_s: float = 60.0
    optimize_interval_s: float = 600.0
    leak_threshold: float = 1.5   # recent/older heap ratio
    gc_cooldown_s: float = 300.0
    max_samples: int = 100
    target_fraction: float = 0.8
    enable_manual_gc: bool = True
    kill_switch: bool = False     # hard-off for automatic scheduling

    def __post_init__(self):
        if self.leak_threshold <= 1.0:
            raise ValueError(f"leak_threshold must be > 1.0, got {self.leak_threshold}")

        tf = self.target_fraction
        if tf <= 0.0:
            raise ValueError(f"target_fraction must be > 0, got {tf}")

        # Apply normalized values into frozen dataclass
        object.__setattr__(self, "max_cache_bytes", max(0, int(self.max_cache_bytes)))
        object.__setattr__(self, "sample_interval_s", max(_MIN_INTERVAL_S, self.sample_interval_s))
        object.__setattr__(self, "optimize_interval_s", max(_MIN_INTERVAL_S, self.optimize_interval_s))
        object.__setattr__(self, "gc_cooldown_s", max(0.0, self.gc_cooldown_s))
        object.__setattr__(self, "max_samples", max(_MIN_SAMPLES, int(self.max_samples)))
        object.__setattr__(self, "target_fraction", min(1.0, tf))
        if self.cache_root is not None:
            object.__setattr__(self, "cache_root", os.fspath(self.cache_root))

    # --------- Factory helpers ---------

    @staticmethod
    def from_env(base: Optional["ResGuardConfig"] = None) -> "ResGuardConfig":
        """
        Build config from environment variables, overlaying a base config.
        Supported envs:
          RESGUARD_CACHE_ROOT
          RESGUARD_MAX_CACHE_MB
          RESGUARD_SAMPLE_INTERVAL_S
          RESGUARD_OPTIMIZE_INTERVAL_S
          RESGUARD_LEAK_THRESHOLD
          RESGUARD_GC_COOLDOWN_S
          RESGUARD_MAX_SAMPLES
          RESGUARD_TARGET_FRACTION
          RESGUARD_MANUAL_GC (0|1)
          RESGUARD_KILL_SWITCH (0|1)
        """
        base = base or ResGuardConfig()
        max_mb = _env_float("RESGUARD_MAX_CACHE_MB", base.max_cache_bytes / MIB)
        return replace(
            base,
            cache_root=os.getenv("RESGUARD_CACHE_ROOT", base.cache_root),
            max_cache_bytes=int(max_mb * MIB),
            sample_interval_s=_env_float("RESGUARD_SAMPLE_INTERVAL_S", base.sample_interval_s),
            optimize_interval_s=_env_float("RESGUARD_OPTIMIZE_INTERVAL_S", base.optimize_interval_s),
            leak_threshold=_env_float("RESGUARD_LEAK_THRESHOLD", base.leak_threshold),
            gc_cooldown_s=_env_float("RESGUARD_GC_COOLDOWN_S", base.gc_cooldown_s),
            max_samples=_env_int("RESGUARD_MAX_SAMPLES", base.max_samples),
            target_fraction=_env_float("RESGUARD_TARGET_FRACTION", base.target_fraction),
            enable_manual_gc=_env_bool("RESGUARD_MANUAL_GC", base.enable_manual_gc),
            kill_switch=_env_bool("RESGUARD_KILL_SWITCH", base.kill_switch),
        )

    def merge(self, **overrides) -> "ResGuardConfig":
        """Return a copy with provided fields overridden (immutably)."""
        return replace(self, **overrides)

    # --------- Convenience getters ---------

    def is_enabled(self) -> bool:
        return not self.kill_switch

    # --------- Safe string repr ---------
    def __repr__(self) -> str:
        return (f"ResGuardConfig(cache_root={self.cache_root!r}, "
                f"max_cache_mb={self.max_cache_bytes / MIB:.1f}, "
                f"sample_interval_s={self.sample_interval_s}, "
                f"optimize_interval_s={self.optimize_interval_s}, "
                f"leak_threshold={self.leak_threshold}, gc_cooldown_s={self.gc_cooldown_s}, "
                f"max_samples={self.max_samples}, target_fraction={self.target_fraction}, "
                f"enable_manual_gc={self.enable_manual_gc}, kill_switch={self.kill_switch})")
