"""
Archive classification and instruction synthesis.

Core Components:
- paths: structural path matching over archive listings
- instructions: placement instruction types and the re-rooting builder
- ue4ss_files: content rewrites for files shipped with UE4SS
- archetypes: archetype table and the classification cascade
"""

from .archetypes import (
    DEFAULT_ARCHETYPES,
    Archetype,
    ArchetypeCascade,
    BuildContext,
    InstallPlan,
    create_default_cascade,
)
from .instructions import (
    CopyInstruction,
    GenerateFileInstruction,
    Instruction,
    SetModTypeInstruction,
    instructions_to_dicts,
)

__all__ = [
    "Archetype",
    "ArchetypeCascade",
    "BuildContext",
    "InstallPlan",
    "DEFAULT_ARCHETYPES",
    "create_default_cascade",
    "CopyInstruction",
    "GenerateFileInstruction",
    "SetModTypeInstruction",
    "Instruction",
    "instructions_to_dicts",
]
