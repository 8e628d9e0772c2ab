"""
grounded-modkit Dependency Subsystem

Keeps the UE4SS companion tool resolved and installed through the host mod
manager.

Core Components:
- interfaces: Release feed records and the ModHost contract
- requirements: Plugin requirements and per-call resolution overrides
- version: Version extraction and semantic-version comparison
- github_source: Release fetching and asset selection
- mods: Lookups over installed mods and downloads
- orchestrator: Version checks and the install sequence
"""

from .github_source import GithubReleaseSource, select_asset
from .interfaces import Asset, Download, Mod, ModHost, Release
from .mods import (
    find_download_id_by_file,
    find_download_id_by_pattern,
    find_install_folder_by_file,
    find_latest_mod_by_file,
    find_mod_by_file,
    find_mods_by_file,
    walk_path,
)
from .orchestrator import (
    DependencyOrchestrator,
    DependencyState,
    InstallReport,
    InstallStep,
)
from .requirements import (
    PLUGIN_REQUIREMENT_UE4SS,
    PLUGIN_REQUIREMENTS,
    PluginRequirement,
    ResolutionOverride,
)
from .version import VersionResolver, is_unknown_version

__all__ = [
    # Interfaces
    "Release",
    "Asset",
    "Mod",
    "Download",
    "ModHost",
    # Requirements
    "PluginRequirement",
    "ResolutionOverride",
    "PLUGIN_REQUIREMENT_UE4SS",
    "PLUGIN_REQUIREMENTS",
    # Release source
    "GithubReleaseSource",
    "select_asset",
    # Versions
    "VersionResolver",
    "is_unknown_version",
    # Mod lookups
    "walk_path",
    "find_mod_by_file",
    "find_mods_by_file",
    "find_latest_mod_by_file",
    "find_download_id_by_pattern",
    "find_download_id_by_file",
    "find_install_folder_by_file",
    # Orchestration
    "DependencyOrchestrator",
    "DependencyState",
    "InstallReport",
    "InstallStep",
]
