"""
Constants and configuration values for grounded-modkit.

This module contains the game layout, UE4SS file names, mod types, GitHub
URLs, timeouts, and other constants used throughout the application.
"""

# Game identity
GAME_ID = "grounded"
STEAM_APP_ID = "962130"
XBOX_APP_ID = "Microsoft.Maine"
DEFAULT_EXECUTABLE = "Grounded.exe"  # relative to game root
XBOX_EXECUTABLE = "gamelaunchhelper.exe"

STORE_STEAM = "steam"
STORE_XBOX = "xbox"
STEAM_DIR_NAME = "Win64"
XBOX_DIR_NAME = "WinGDK"

# All instruction paths use the Windows separator
PATH_SEP = "\\"
BINARIES_PATH_PREFIX = "Maine\\Binaries"
BINARIES_PATH = {
    STORE_STEAM: f"{BINARIES_PATH_PREFIX}\\{STEAM_DIR_NAME}",
    STORE_XBOX: f"{BINARIES_PATH_PREFIX}\\{XBOX_DIR_NAME}",
}
PAKS_PATH = "Maine\\Content\\Paks"

# UE4SS layout
UE4SS_NAME = "UE4SS v3"
UE4SS_USER_FACING_NAME = "UE4 Scripting System"
UE4SS_DIR_NAME = "ue4ss"
UE4SS_DLL_FILE = "UE4SS.dll"
UE4SS_MODS_PATH = f"{UE4SS_DIR_NAME}\\Mods"
UE4SS_SETTINGS_FILE = "UE4SS-settings.ini"
UE4SS_MODS_FILE = "mods.txt"
UE4SS_MODS_FILE_BACKUP = "mods.txt.original"
UE4SS_SHARED_DIR_NAME = "shared"
UE4SS_AUTHOR = "UE4SS"
UE4SS_SOURCE = "user-generated"
UE4SS_SOURCE_URI = "https://github.com/UE4SS-RE/RE-UE4SS"

# Literal substitutions applied to UE4SS-settings.ini, in order
UE4SS_SETTINGS_SUBSTITUTIONS = (
    ("bUseUObjectArrayCache = true", "bUseUObjectArrayCache = false"),
    ("DumpOffsetsAndSizes = 1", "DumpOffsetsAndSizes = 0"),
    ("GraphicsAPI = opengl", "GraphicsAPI = dx11"),
    ("ConsoleEnabled = 1", "ConsoleEnabled = 0"),
)

PAK_EXTENSION = ".pak"

# The empty string is the host's default mod type
MOD_TYPE_DEFAULT = ""

# Installer keys and priorities (lower is tried first)
INSTALLER_UE4SS = "grounded-ue4ss"
INSTALLER_UE4SS_SHARED = "grounded-ue4ss_shared"
INSTALLER_UE4SS_LUA = "grounded-ue4ss_lua"
INSTALLER_UE4SS_CPP = "grounded-ue4ss_cpp"
INSTALLER_BP_LOGIC_MODS = "grounded-ue4ss_BPLogicMods"
INSTALLER_PAKS = "grounded-paks"
INSTALLER_GENERIC = "grounded-generic"

PRIORITY_UE4SS = 10
PRIORITY_UE4SS_SHARED = 20
PRIORITY_UE4SS_LUA = 25
PRIORITY_UE4SS_CPP = 30
PRIORITY_BP_LOGIC_MODS = 35
PRIORITY_PAKS = 40
PRIORITY_GENERIC = 90

# GitHub API
GITHUB_API_BASE = "https://api.github.com/repos"
UE4SS_GITHUB_URL = f"{GITHUB_API_BASE}/UE4SS-RE/RE-UE4SS"
DEFAULT_RELEASE_TAG = "experimental"
UE4SS_FILE_VERSION_PATTERN = r"^UE4SS_v(.+)\.zip"
UE4SS_FILE_ARCHIVE_PATTERN = r"^UE4SS_v(\d+\.\d+\.\d+-\d+-[a-z\d]+)\.zip"
UE4SS_ARCHIVE_FILE_TEMPLATE = "UE4SS_v{version}.zip"

# Network timeouts (in seconds)
GITHUB_API_TIMEOUT = 10
RATE_LIMIT_WARNING_THRESHOLD = 10

# Version sentinel when nothing can be extracted
UNKNOWN_VERSION = "0.0.0"

# Host interaction
NOTIFICATION_ID_INSTALLING = "grounded-installing-requirements"
INSTALLING_FOLDER_SUFFIX = ".installing"
MOD_STATE_INSTALLED = "installed"

# Configuration
APP_NAME = "grounded-modkit"
CONFIG_FILE_NAME = "config.yaml"

# Logging
LOGGER_NAME = "grounded_modkit"
LOG_LEVEL_ENV_VAR = "GROUNDED_MODKIT_LOG_LEVEL"
LOG_FILE_NAME = "grounded-modkit.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
