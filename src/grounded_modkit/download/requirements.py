"""
Plugin requirements: static descriptions of companion tools.

A requirement says where a tool's releases are published, how its archive is
recognised among release assets and downloads, and how an installed copy is
found. Requirements are immutable; pinning an exact archive for one call is
done with a ResolutionOverride.
"""

import dataclasses
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Pattern

from grounded_modkit.constants import (
    MOD_TYPE_DEFAULT,
    UE4SS_ARCHIVE_FILE_TEMPLATE,
    UE4SS_AUTHOR,
    UE4SS_DLL_FILE,
    UE4SS_FILE_ARCHIVE_PATTERN,
    UE4SS_FILE_VERSION_PATTERN,
    UE4SS_GITHUB_URL,
    UE4SS_NAME,
    UE4SS_SOURCE_URI,
    UE4SS_USER_FACING_NAME,
)

from .mods import find_download_id_by_pattern, find_latest_mod_by_file

if TYPE_CHECKING:
    from .interfaces import Mod, ModHost


@dataclass(frozen=True)
class PluginRequirement:
    """An external dependency and how to locate and compare its releases."""

    name: str
    user_facing_name: str
    github_url: str
    """GitHub API base URL of the repository, e.g. https://api.github.com/repos/owner/repo"""

    mod_type: str = MOD_TYPE_DEFAULT
    assembly_file_name: Optional[str] = None
    """File whose presence identifies an installed copy"""

    archive_file_name: Optional[str] = None
    """Exact release asset name; used when no archive pattern is set"""

    file_archive_pattern: Optional[Pattern[str]] = None
    """Release asset / download file name pattern"""

    file_version_pattern: Optional[Pattern[str]] = None
    """Pattern whose first group is the version embedded in a file name"""

    archive_file_template: Optional[str] = None
    """Template producing the exact archive name for a version ("{version}")"""

    author: str = ""
    source_uri: str = ""

    find_mod: Optional[Callable[["ModHost"], Optional["Mod"]]] = None
    find_download_id: Optional[Callable[["ModHost"], Optional[str]]] = None


@dataclass(frozen=True)
class ResolutionOverride:
    """Per-call selection of an exact archive file name."""

    archive_file_name: str

    @classmethod
    def for_version(
        cls, requirement: PluginRequirement, version: str
    ) -> "ResolutionOverride":
        """
        Derive the exact archive name of `version` from the requirement's template.

        Raises:
            ValueError: If the requirement has no archive file template.
        """
        if not requirement.archive_file_template:
            raise ValueError(f"{requirement.name} cannot pin a version")
        return cls(requirement.archive_file_template.format(version=version))


def apply_override(
    requirement: PluginRequirement, override: Optional[ResolutionOverride]
) -> PluginRequirement:
    """
    Return the requirement as seen by one call.

    With an override the archive pattern is dropped and the exact file name is
    used instead; the original requirement is left untouched.
    """
    if override is None:
        return requirement
    return dataclasses.replace(
        requirement,
        file_archive_pattern=None,
        archive_file_name=override.archive_file_name,
    )


def _find_ue4ss_mod(host: "ModHost") -> Optional["Mod"]:
    return find_latest_mod_by_file(host, MOD_TYPE_DEFAULT, UE4SS_DLL_FILE)


def _find_ue4ss_download(host: "ModHost") -> Optional[str]:
    return find_download_id_by_pattern(host, PLUGIN_REQUIREMENT_UE4SS)


PLUGIN_REQUIREMENT_UE4SS = PluginRequirement(
    name=UE4SS_NAME,
    user_facing_name=UE4SS_USER_FACING_NAME,
    github_url=UE4SS_GITHUB_URL,
    mod_type=MOD_TYPE_DEFAULT,
    assembly_file_name=UE4SS_DLL_FILE,
    file_archive_pattern=re.compile(UE4SS_FILE_ARCHIVE_PATTERN),
    file_version_pattern=re.compile(UE4SS_FILE_VERSION_PATTERN),
    archive_file_template=UE4SS_ARCHIVE_FILE_TEMPLATE,
    author=UE4SS_AUTHOR,
    source_uri=UE4SS_SOURCE_URI,
    find_mod=_find_ue4ss_mod,
    find_download_id=_find_ue4ss_download,
)

PLUGIN_REQUIREMENTS: List[PluginRequirement] = [PLUGIN_REQUIREMENT_UE4SS]
