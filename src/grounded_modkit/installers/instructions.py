"""
Placement instructions produced by archetype builders.

Instructions are declarative: an external installer executes them in the
order they were produced.
"""

import ntpath
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from grounded_modkit.constants import MOD_TYPE_DEFAULT


@dataclass(frozen=True)
class CopyInstruction:
    """Copy an archive entry to a destination relative to the mod type root."""

    source: str
    destination: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "copy", "source": self.source, "destination": self.destination}


@dataclass(frozen=True)
class GenerateFileInstruction:
    """Write `content` to `destination` instead of copying an archive entry."""

    content: str
    destination: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "generatefile",
            "data": self.content,
            "destination": self.destination,
        }


@dataclass(frozen=True)
class SetModTypeInstruction:
    """Mark the resulting mod as belonging to a mod type; "" is the default type."""

    value: str = MOD_TYPE_DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "setmodtype", "value": self.value}


Instruction = Union[CopyInstruction, GenerateFileInstruction, SetModTypeInstruction]

# Produces the instructions for one file, or None to fall back to a plain copy
FileRewriter = Callable[[str, str], Optional[List[Instruction]]]


def rebase_destination(target_root: str, file_path: str, strip_length: int) -> str:
    """
    Re-root an archive path: drop its first `strip_length` characters and join the rest under `target_root`.

    An empty `target_root` keeps the remaining relative path unchanged.
    """
    relative = file_path[strip_length:]
    joined = ntpath.join(target_root, relative) if target_root else relative
    return ntpath.normpath(joined) if joined else joined


def build_copy_instructions(
    files: Sequence[str],
    target_root: str,
    strip_length: int,
    rewriter: Optional[FileRewriter] = None,
) -> List[Instruction]:
    """
    Build ordered instructions for already-filtered `files`.

    Each file becomes a CopyInstruction to its re-rooted destination, unless
    `rewriter` returns a replacement list for it (which may be empty to skip
    the file).

    Parameters:
        files (Sequence[str]): File entries, directory entries already removed.
        target_root (str): Destination directory relative to the mod type root.
        strip_length (int): Number of leading characters removed from each path.
        rewriter (Optional[FileRewriter]): Optional per-file override taking (source, destination).

    Returns:
        List[Instruction]: Instructions in listing order.
    """
    instructions: List[Instruction] = []
    for source in files:
        destination = rebase_destination(target_root, source, strip_length)
        if rewriter is not None:
            replacement = rewriter(source, destination)
            if replacement is not None:
                instructions.extend(replacement)
                continue
        instructions.append(CopyInstruction(source=source, destination=destination))
    return instructions


def instructions_to_dicts(instructions: Sequence[Instruction]) -> List[Dict[str, Any]]:
    """Render instructions in the host's wire shape, preserving order."""
    return [instruction.to_dict() for instruction in instructions]
