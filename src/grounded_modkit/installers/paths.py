"""
Structural path matching over archive file listings.

Archive listings are flat sequences of relative paths using the backslash
separator; directory entries carry a trailing separator. Every function here
is pure and iterates the listing in the order given.
"""

import ntpath
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence

from grounded_modkit.constants import (
    PAK_EXTENSION,
    UE4SS_DIR_NAME,
    UE4SS_DLL_FILE,
    UE4SS_SHARED_DIR_NAME,
)

DIRECTORY_MARKERS = ("\\", "/")


@dataclass(frozen=True)
class StructuralPattern:
    """
    A path shape that an archetype looks for.

    Either `regex` or `extension` is set. For regex shapes the anchor is where
    the match starts; for extension shapes it is where the base name starts.
    """

    name: str
    regex: Optional[Pattern[str]] = None
    extension: Optional[str] = None
    suffix: Optional[str] = None
    """Literal tail removed from the matched path to obtain the root, if any"""

    def anchor(self, path: str) -> Optional[int]:
        """Return the anchor offset of `path` when it has this shape, else None."""
        if self.regex is not None:
            match = self.regex.search(path)
            return match.start() if match else None
        if self.extension is not None:
            if is_directory_entry(path):
                return None
            if ntpath.splitext(path)[1].lower() == self.extension:
                return len(path) - len(ntpath.basename(path))
        return None

    def matches(self, path: str) -> bool:
        return self.anchor(path) is not None


@dataclass(frozen=True)
class PathMatch:
    """The first entry of a listing that has a given shape."""

    path: str
    anchor: int

    @property
    def parent(self) -> str:
        """Everything in front of the anchor; stripped from destinations."""
        return self.path[: self.anchor]


UE4SS_INJECTOR = StructuralPattern(
    name="ue4ss-injector",
    regex=re.compile(
        r"(?:^|(?<=\\))"
        + re.escape(f"{UE4SS_DIR_NAME}\\{UE4SS_DLL_FILE}")
        + r"$"
    ),
    suffix=f"{UE4SS_DIR_NAME}\\{UE4SS_DLL_FILE}",
)
UE4SS_SHARED = StructuralPattern(
    name="ue4ss-shared",
    regex=re.compile(r"(?:^|(?<=\\))" + re.escape(UE4SS_SHARED_DIR_NAME) + r"\\"),
)
UE4SS_LUA = StructuralPattern(
    name="ue4ss-lua",
    regex=re.compile(r"[^\\]+\\Scripts\\main\.lua$"),
    suffix="\\Scripts\\main.lua",
)
UE4SS_CPP = StructuralPattern(
    name="ue4ss-cpp",
    regex=re.compile(r"[^\\]+\\dlls\\main\.dll$"),
    suffix="\\dlls\\main.dll",
)
BP_LOGIC_MODS = StructuralPattern(
    name="bp-logicmods",
    regex=re.compile(r"LogicMods\\.+\.pak$"),
)
PAK_FILE = StructuralPattern(name="pak", extension=PAK_EXTENSION)

# The install root of a generic archive: everything up to a "Grounded\" folder, or nothing
GENERIC_ROOT_RX = re.compile(r".*\\?(?:Grounded\\|^)")


def is_directory_entry(path: str) -> bool:
    """Return True if the listing entry denotes a directory."""
    return path.endswith(DIRECTORY_MARKERS)


def find_first_match(
    files: Iterable[str], pattern: StructuralPattern
) -> Optional[PathMatch]:
    """
    Return the first entry of `files`, in listing order, that has the given shape.

    Returns:
        Optional[PathMatch]: The matched path with its anchor offset, or None if no entry matches.
    """
    for path in files:
        anchor = pattern.anchor(path)
        if anchor is not None:
            return PathMatch(path=path, anchor=anchor)
    return None


def has_match(files: Iterable[str], pattern: StructuralPattern) -> bool:
    return find_first_match(files, pattern) is not None


def root_prefix(matched_path: str, suffix: str) -> str:
    """
    Strip a known trailing `suffix` from `matched_path`.

    `root_prefix("Foo\\ModA\\Scripts\\main.lua", "\\Scripts\\main.lua")` is
    `"Foo\\ModA"`. A path that does not end with the suffix is returned as is.
    """
    if suffix and matched_path.endswith(suffix):
        return matched_path[: -len(suffix)]
    return matched_path


def filter_under_root(files: Sequence[str], root: str) -> List[str]:
    """
    Keep file entries whose path contains `root` anywhere, dropping directory entries.

    Containment is a plain substring test, not a path-segment prefix test, so a
    sibling whose path merely contains the root text is kept as well.
    """
    return [
        path for path in files if root in path and not is_directory_entry(path)
    ]


def generic_root(files: Sequence[str]) -> str:
    """
    Locate the install root of an archive without a recognised shape.

    The first file entry decides: if it sits below a `Grounded\\` folder the
    root is everything up to and including that folder, otherwise it is empty.
    """
    first_file = next((path for path in files if not is_directory_entry(path)), None)
    if first_file is None:
        return ""
    match = GENERIC_ROOT_RX.match(first_file)
    return match.group(0) if match else ""
