"""
Special handling for files shipped inside the UE4SS archive.

`mods.txt` is never deployed over the user's list; its pristine copy is kept
as `mods.txt.original`. `UE4SS-settings.ini` is patched with settings known to
work with Grounded.
"""

import ntpath
import os
from typing import Callable, List, Optional

from grounded_modkit.constants import (
    UE4SS_MODS_FILE,
    UE4SS_MODS_FILE_BACKUP,
    UE4SS_SETTINGS_FILE,
    UE4SS_SETTINGS_SUBSTITUTIONS,
)
from grounded_modkit.log_utils import logger

from .instructions import FileRewriter, GenerateFileInstruction, Instruction

StagedFileReader = Callable[[str], str]


def read_staged_file_content(path: str) -> str:
    """Read a fully extracted staging file as UTF-8 text."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def staged_path(staging_path: str, source: str) -> str:
    """Map an archive-relative entry to its location inside the staging directory."""
    return os.path.join(staging_path, *[part for part in source.split("\\") if part])


def patch_settings(content: str) -> str:
    """Apply the UE4SS settings substitutions, in order, to `content`."""
    for original, replacement in UE4SS_SETTINGS_SUBSTITUTIONS:
        content = content.replace(original, replacement)
    return content


def make_ue4ss_rewriter(
    staging_path: str, reader: Optional[StagedFileReader] = None
) -> FileRewriter:
    """
    Build the per-file rewriter used by the UE4SS injector archetype.

    Parameters:
        staging_path (str): Directory the archive was extracted into.
        reader (Optional[StagedFileReader]): Reads a staging file; defaults to reading from disk.

    Returns:
        FileRewriter: Returns replacement instructions for the mods list and
        the settings file, and None for every other file.
    """
    read = reader or read_staged_file_content

    def rewrite(source: str, destination: str) -> Optional[List[Instruction]]:
        file_name = ntpath.basename(source)
        if file_name == UE4SS_MODS_FILE:
            content = read(staged_path(staging_path, source))
            backup = ntpath.join(ntpath.dirname(destination), UE4SS_MODS_FILE_BACKUP)
            logger.debug(f"Keeping {source} as {backup}")
            return [GenerateFileInstruction(content=content, destination=backup)]
        if file_name == UE4SS_SETTINGS_FILE:
            content = read(staged_path(staging_path, source))
            logger.debug(f"Patching {source}")
            return [
                GenerateFileInstruction(
                    content=patch_settings(content), destination=destination
                )
            ]
        return None

    return rewrite
