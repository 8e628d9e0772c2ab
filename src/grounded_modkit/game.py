"""
Game discovery and directory layout for Grounded.

Steam and Xbox (Microsoft Store / Game Pass) builds place the game binaries in
different directories; everything UE4SS-related is rooted there.
"""

import ntpath
import os
from dataclasses import dataclass
from typing import Optional

from grounded_modkit.constants import (
    BINARIES_PATH,
    BINARIES_PATH_PREFIX,
    DEFAULT_EXECUTABLE,
    STEAM_APP_ID,
    STEAM_DIR_NAME,
    STORE_XBOX,
    UE4SS_MODS_PATH,
    XBOX_APP_ID,
    XBOX_DIR_NAME,
    XBOX_EXECUTABLE,
)
from grounded_modkit.log_utils import logger


@dataclass(frozen=True)
class Discovery:
    """Where and from which store the game was found."""

    path: str
    """Absolute path of the game installation root"""

    store: Optional[str] = None
    """Store identifier ("steam", "xbox") or None when unknown"""


def resolve_ue4ss_path(store: Optional[str] = None) -> str:
    """
    Return the directory, relative to the game root, that UE4SS is installed into.

    Xbox builds use `WinGDK`; every other store (or an unknown one) uses `Win64`.
    """
    architecture = XBOX_DIR_NAME if store == STORE_XBOX else STEAM_DIR_NAME
    return ntpath.join(BINARIES_PATH_PREFIX, architecture)


def resolve_ue4ss_mods_path(store: Optional[str] = None) -> str:
    """Return the UE4SS `Mods` directory relative to the game root."""
    return ntpath.join(resolve_ue4ss_path(store), UE4SS_MODS_PATH)


def get_executable(store: Optional[str] = None) -> str:
    """Return the launcher executable for the given store."""
    return XBOX_EXECUTABLE if store == STORE_XBOX else DEFAULT_EXECUTABLE


def get_store_app_id(store: Optional[str] = None) -> str:
    return XBOX_APP_ID if store == STORE_XBOX else STEAM_APP_ID


def get_binaries_path(discovery: Discovery) -> Optional[str]:
    """
    Determine the binaries directory for a discovered installation.

    The store's path is used when the store is known. Otherwise each candidate
    is probed under the game root and the first existing one wins.

    Returns:
        Optional[str]: Binaries path relative to the game root, or None if it cannot be determined.
    """
    if discovery.store:
        binaries = BINARIES_PATH.get(discovery.store)
        if binaries is not None:
            return binaries

    for binaries in BINARIES_PATH.values():
        candidate = os.path.join(discovery.path, *binaries.split("\\"))
        if os.path.exists(candidate):
            return binaries

    logger.error(f"Unable to find the binaries path under {discovery.path}")
    return None
