"""Configuration helpers for the path editing engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from penpath.consts import BoundsDefaults, HandleDefaults, Thresholds


@dataclass(frozen=True)
class EngineConfig:
    """Bundle of all tunable defaults used by the engine."""

    thresholds: Thresholds = field(default_factory=Thresholds)
    handles: HandleDefaults = field(default_factory=HandleDefaults)
    bounds: BoundsDefaults = field(default_factory=BoundsDefaults)


_ENGINE_CONFIG = EngineConfig()


def get_config() -> EngineConfig:
    return copy.deepcopy(_ENGINE_CONFIG)


def set_config(config: EngineConfig) -> None:
    global _ENGINE_CONFIG  # pylint: disable=global-statement
    _ENGINE_CONFIG = copy.deepcopy(config)


def reset_config() -> None:
    """Restore the built-in defaults."""
    set_config(EngineConfig())
