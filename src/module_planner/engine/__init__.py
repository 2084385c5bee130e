"""Build service and its configuration."""

from module_planner.engine.build_config import BuildConfig
from module_planner.engine.build_engine import (
    BuildError,
    BuildErrorKind,
    BuildResult,
    CharacterBuildService,
)
from module_planner.engine.session import SessionRegistry

__all__ = [
    "BuildConfig",
    "BuildError",
    "BuildErrorKind",
    "BuildResult",
    "CharacterBuildService",
    "SessionRegistry",
]
