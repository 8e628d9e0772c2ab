"""
Lookups over the host's installed mods and downloads.

Installed mods are recognised by the files they contain, so these helpers
walk each mod's folder under the host's install path.
"""

import errno
import ntpath
import os
import stat
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from grounded_modkit.constants import INSTALLING_FOLDER_SUFFIX
from grounded_modkit.log_utils import logger

from .interfaces import Mod, ModHost

if TYPE_CHECKING:
    from .requirements import PluginRequirement


def _is_hidden(entry: os.DirEntry) -> bool:
    if entry.name.startswith("."):
        return True
    try:
        attributes = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    except OSError:
        return True
    return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


def walk_path(dir_path: str) -> List[str]:
    """
    List every file below `dir_path`.

    Hidden entries, symbolic links, and entries that cannot be read are
    skipped. A missing directory yields an empty list, since mods are often
    being installed or removed while they are looked up.

    Returns:
        List[str]: Absolute file paths in directory traversal order.
    """
    results: List[str] = []
    pending = [dir_path]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    if entry.is_symlink() or _is_hidden(entry):
                        continue
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            pending.append(entry.path)
                        else:
                            results.append(entry.path)
                    except OSError:
                        continue
        except FileNotFoundError:
            if current == dir_path:
                return []
        except OSError as e:
            if e.errno in (errno.EACCES, errno.EPERM):
                logger.debug(f"Skipping inaccessible directory {current}")
                continue
            raise
    return results


def get_mods(host: ModHost, mod_type: str) -> List[Mod]:
    """Return mods of `mod_type` or of the default type."""
    return [mod for mod in host.get_mods() if mod.type in (mod_type, "")]


def get_enabled_mods(host: ModHost, mod_type: str) -> List[Mod]:
    """Return mods of `mod_type` (or the default type) enabled in the active profile."""
    profile_id = host.get_active_profile_id()
    return [mod for mod in get_mods(host, mod_type) if host.is_enabled(profile_id, mod.id)]


def _mod_contains_file(host: ModHost, mod: Mod, file_name: str) -> bool:
    mod_path = os.path.join(host.get_install_path(), mod.installation_path)
    normalized = file_name.replace("\\", os.sep)
    return any(path.endswith(normalized) for path in walk_path(mod_path))


def find_mod_by_file(host: ModHost, mod_type: str, file_name: str) -> Optional[Mod]:
    """Return the first mod of `mod_type` containing a file ending with `file_name`."""
    for mod in get_mods(host, mod_type):
        if _mod_contains_file(host, mod, file_name):
            return mod
    return None


def find_mods_by_file(host: ModHost, mod_type: str, file_name: str) -> List[Mod]:
    """Return every mod of `mod_type` containing a file ending with `file_name`."""
    return [
        mod for mod in get_mods(host, mod_type) if _mod_contains_file(host, mod, file_name)
    ]


def _updated_timestamp(mod: Mod) -> float:
    value = mod.attributes.get("updatedTimestamp")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000
        except ValueError:
            return 0.0
    return 0.0


def find_latest_mod_by_file(
    host: ModHost, mod_type: str, file_name: str
) -> Optional[Mod]:
    """Return the most recently updated mod containing `file_name`, or None."""
    mods = find_mods_by_file(host, mod_type, file_name)
    if not mods:
        return None
    return sorted(mods, key=_updated_timestamp, reverse=True)[0]


def find_download_id_by_pattern(
    host: ModHost, requirement: "PluginRequirement"
) -> Optional[str]:
    """
    Return the first download whose file name matches the requirement's archive pattern.

    Returns None, with a warning, when the requirement has no archive pattern.
    """
    if requirement.file_archive_pattern is None:
        logger.warning(f"No archive pattern defined for {requirement.name}")
        return None
    for download_id, download in host.get_downloads().items():
        if requirement.file_archive_pattern.search(ntpath.basename(download.local_path)):
            return download_id
    return None


def find_download_id_by_file(host: ModHost, file_name: str) -> str:
    """
    Return the download whose file name equals `file_name`, ignoring case.

    When several match the last one wins; "" means no match.
    """
    found = ""
    for download_id, download in host.get_downloads().items():
        if ntpath.basename(download.local_path).lower() == file_name.lower():
            found = download_id
    return found


def find_install_folder_by_file(install_path: str, file_path: str) -> Optional[str]:
    """
    Locate the folder of a mod that is still being installed.

    If exactly one `*.installing` folder exists it is returned; otherwise the
    one containing a file ending with `file_path` is.
    """
    try:
        folders = [
            name
            for name in os.listdir(install_path)
            if os.path.splitext(name)[1] == INSTALLING_FOLDER_SUFFIX
        ]
    except FileNotFoundError:
        return None

    if len(folders) == 1:
        return os.path.join(install_path, folders[0])

    normalized = file_path.replace("\\", os.sep)
    for folder in folders:
        mod_path = os.path.join(install_path, folder)
        if any(path.endswith(normalized) for path in walk_path(mod_path)):
            return mod_path
    return None
