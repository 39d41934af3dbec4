"""Engine module - synchronization and validation.

Contains:
- Identifier validation
- Runtime Index: the session's working copy
- Validation Engine: repairs stores and indexes
- Synchronizer: load and save orchestration
"""

from editor_profiles.engine.runtime_index import RuntimeIndex
from editor_profiles.engine.validation_engine import ValidationEngine, ValidationResult
from editor_profiles.engine.synchronizer import Synchronizer

__all__ = [
    "RuntimeIndex",
    "ValidationEngine",
    "ValidationResult",
    "Synchronizer",
]
