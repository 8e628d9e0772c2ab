"""
Archive Archetypes and the Classification Cascade

Each archetype pairs a test over an archive listing with a builder that turns
the listing into placement instructions. The cascade tries archetypes in
ascending priority order and the first whose test passes wins; a generic
catch-all with the highest priority number guarantees a result for the game.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from grounded_modkit.constants import (
    GAME_ID,
    INSTALLER_BP_LOGIC_MODS,
    INSTALLER_GENERIC,
    INSTALLER_PAKS,
    INSTALLER_UE4SS,
    INSTALLER_UE4SS_CPP,
    INSTALLER_UE4SS_LUA,
    INSTALLER_UE4SS_SHARED,
    MOD_TYPE_DEFAULT,
    PAKS_PATH,
    PRIORITY_BP_LOGIC_MODS,
    PRIORITY_GENERIC,
    PRIORITY_PAKS,
    PRIORITY_UE4SS,
    PRIORITY_UE4SS_CPP,
    PRIORITY_UE4SS_LUA,
    PRIORITY_UE4SS_SHARED,
)
from grounded_modkit.exceptions import MalformedArchiveError, UnsupportedContentError
from grounded_modkit.game import resolve_ue4ss_mods_path, resolve_ue4ss_path
from grounded_modkit.log_utils import logger

from .instructions import Instruction, SetModTypeInstruction, build_copy_instructions
from .paths import (
    BP_LOGIC_MODS,
    PAK_FILE,
    UE4SS_CPP,
    UE4SS_INJECTOR,
    UE4SS_LUA,
    UE4SS_SHARED,
    PathMatch,
    StructuralPattern,
    filter_under_root,
    find_first_match,
    generic_root,
    has_match,
    root_prefix,
)
from .ue4ss_files import StagedFileReader, make_ue4ss_rewriter


@dataclass(frozen=True)
class BuildContext:
    """Inputs a builder needs besides the listing itself."""

    store: Optional[str] = None
    """Store the game was discovered from; selects Win64 or WinGDK"""

    staging_path: Optional[str] = None
    """Directory the archive was extracted into, for content rewrites"""

    reader: Optional[StagedFileReader] = None
    """Reads staging files; defaults to reading from disk"""


ArchetypeTest = Callable[[Sequence[str]], bool]
ArchetypeBuild = Callable[[Sequence[str], BuildContext], List[Instruction]]


@dataclass(frozen=True)
class Archetype:
    """A recognised shape of mod archive."""

    key: str
    priority: int
    test: ArchetypeTest
    build: ArchetypeBuild
    requires_ue4ss: bool = False
    catch_all: bool = False


@dataclass(frozen=True)
class InstallPlan:
    """Outcome of classifying and building one archive listing."""

    archetype_key: str
    instructions: List[Instruction] = field(default_factory=list)
    requires_ue4ss: bool = False


def _require_match(
    files: Sequence[str], pattern: StructuralPattern, key: str
) -> PathMatch:
    match = find_first_match(files, pattern)
    if match is None:
        raise MalformedArchiveError(
            f"Archetype {key} matched but no {pattern.name} anchor was found",
            details=f"{len(files)} entries",
        )
    return match


def build_ue4ss_injector(
    files: Sequence[str], context: BuildContext
) -> List[Instruction]:
    """
    Place the UE4SS injector itself.

    Files keep their path relative to the folder holding `ue4ss\\UE4SS.dll` and
    land in the binaries directory. The mods list is preserved as a backup and
    the settings file is patched. The mod is marked with the default type.
    """
    match = _require_match(files, UE4SS_INJECTOR, INSTALLER_UE4SS)
    root = root_prefix(match.path, UE4SS_INJECTOR.suffix or "")
    rewriter = make_ue4ss_rewriter(context.staging_path or "", context.reader)
    instructions = build_copy_instructions(
        filter_under_root(files, root),
        resolve_ue4ss_path(context.store),
        len(root),
        rewriter=rewriter,
    )
    instructions.append(SetModTypeInstruction(value=MOD_TYPE_DEFAULT))
    return instructions


def build_ue4ss_shared(
    files: Sequence[str], context: BuildContext
) -> List[Instruction]:
    """Place shared UE4SS Lua libraries under the UE4SS Mods folder."""
    match = _require_match(files, UE4SS_SHARED, INSTALLER_UE4SS_SHARED)
    root = match.parent
    return build_copy_instructions(
        filter_under_root(files, root),
        resolve_ue4ss_mods_path(context.store),
        len(root),
    )


def _build_ue4ss_mod(
    files: Sequence[str],
    context: BuildContext,
    pattern: StructuralPattern,
    key: str,
) -> List[Instruction]:
    # "<MOD_NAME>\Scripts\main.lua" or "<MOD_NAME>\dlls\main.dll"; the mod folder is kept
    match = _require_match(files, pattern, key)
    root = root_prefix(match.path, pattern.suffix or "")
    return build_copy_instructions(
        filter_under_root(files, root),
        resolve_ue4ss_mods_path(context.store),
        match.anchor,
    )


def build_ue4ss_lua(files: Sequence[str], context: BuildContext) -> List[Instruction]:
    return _build_ue4ss_mod(files, context, UE4SS_LUA, INSTALLER_UE4SS_LUA)


def build_ue4ss_cpp(files: Sequence[str], context: BuildContext) -> List[Instruction]:
    return _build_ue4ss_mod(files, context, UE4SS_CPP, INSTALLER_UE4SS_CPP)


def build_bp_logic_mods(
    files: Sequence[str], context: BuildContext
) -> List[Instruction]:
    """Place blueprint mods: `LogicMods\\*\\*.pak` goes to `Paks\\LogicMods`."""
    match = _require_match(files, BP_LOGIC_MODS, INSTALLER_BP_LOGIC_MODS)
    return build_copy_instructions(
        filter_under_root(files, match.parent), PAKS_PATH, match.anchor
    )


def build_paks(files: Sequence[str], context: BuildContext) -> List[Instruction]:
    """
    Place loose pak mods in the Paks folder.

    Only entries next to (or below) the first `.pak` file are considered; the
    folders above it are dropped from destinations.
    """
    match = _require_match(files, PAK_FILE, INSTALLER_PAKS)
    # A top-level pak's folder is ".", so only entries containing a dot are kept
    root = match.parent.rstrip("\\") or "."
    return build_copy_instructions(
        filter_under_root(files, root), PAKS_PATH, match.anchor
    )


def build_generic(files: Sequence[str], context: BuildContext) -> List[Instruction]:
    """Copy everything relative to the game root, stripping a leading `Grounded\\` folder."""
    root = generic_root(files)
    return build_copy_instructions(filter_under_root(files, root), "", len(root))


def _test_shape(pattern: StructuralPattern) -> ArchetypeTest:
    def test(files: Sequence[str]) -> bool:
        return has_match(files, pattern)

    return test


def _test_any(files: Sequence[str]) -> bool:
    return len(files) > 0


DEFAULT_ARCHETYPES: Tuple[Archetype, ...] = (
    Archetype(
        INSTALLER_UE4SS, PRIORITY_UE4SS, _test_shape(UE4SS_INJECTOR), build_ue4ss_injector
    ),
    Archetype(
        INSTALLER_UE4SS_SHARED,
        PRIORITY_UE4SS_SHARED,
        _test_shape(UE4SS_SHARED),
        build_ue4ss_shared,
        requires_ue4ss=True,
    ),
    Archetype(
        INSTALLER_UE4SS_LUA,
        PRIORITY_UE4SS_LUA,
        _test_shape(UE4SS_LUA),
        build_ue4ss_lua,
        requires_ue4ss=True,
    ),
    Archetype(
        INSTALLER_UE4SS_CPP,
        PRIORITY_UE4SS_CPP,
        _test_shape(UE4SS_CPP),
        build_ue4ss_cpp,
        requires_ue4ss=True,
    ),
    Archetype(
        INSTALLER_BP_LOGIC_MODS,
        PRIORITY_BP_LOGIC_MODS,
        _test_shape(BP_LOGIC_MODS),
        build_bp_logic_mods,
        requires_ue4ss=True,
    ),
    Archetype(INSTALLER_PAKS, PRIORITY_PAKS, _test_shape(PAK_FILE), build_paks),
    Archetype(
        INSTALLER_GENERIC, PRIORITY_GENERIC, _test_any, build_generic, catch_all=True
    ),
)


class ArchetypeCascade:
    """
    Ordered registry of archetypes for one game.

    Archetypes are evaluated strictly in ascending priority order; priorities
    and keys must be unique. Classification never mutates state.
    """

    def __init__(
        self, game_id: str = GAME_ID, archetypes: Sequence[Archetype] = ()
    ) -> None:
        self.game_id = game_id
        self._archetypes: Dict[str, Archetype] = {}
        for archetype in archetypes:
            self.register(archetype)

    def register(self, archetype: Archetype) -> None:
        """
        Add an archetype to the cascade.

        Raises:
            ValueError: If the key or the priority is already registered.
        """
        if archetype.key in self._archetypes:
            raise ValueError(f"Archetype {archetype.key} is already registered")
        for existing in self._archetypes.values():
            if existing.priority == archetype.priority:
                raise ValueError(
                    f"Priority {archetype.priority} of {archetype.key} is already used by {existing.key}"
                )
        self._archetypes[archetype.key] = archetype

    @property
    def archetypes(self) -> Tuple[Archetype, ...]:
        """Registered archetypes in evaluation order."""
        return tuple(sorted(self._archetypes.values(), key=lambda a: a.priority))

    def validate(self) -> None:
        """
        Check that a catch-all archetype terminates the cascade.

        Raises:
            ValueError: If the last archetype is not a catch-all.
        """
        ordered = self.archetypes
        if not ordered or not ordered[-1].catch_all:
            raise ValueError("The last archetype of a cascade must be a catch-all")

    def classify(self, files: Sequence[str], game_id: str) -> Optional[Archetype]:
        """
        Select the archetype for an archive listing.

        Parameters:
            files (Sequence[str]): Archive entries in archive order.
            game_id (str): Game the archive is installed for.

        Returns:
            Optional[Archetype]: The lowest-priority archetype whose test passes,
            or None when the game does not match or nothing matches.
        """
        if game_id != self.game_id:
            logger.debug(f"Not classifying content for game '{game_id}'")
            return None
        for archetype in self.archetypes:
            if archetype.test(files):
                logger.debug(
                    f"Archive matched {archetype.key} (priority {archetype.priority})"
                )
                return archetype
        return None

    def install(
        self,
        files: Sequence[str],
        game_id: str,
        context: Optional[BuildContext] = None,
    ) -> InstallPlan:
        """
        Classify an archive listing and build its instructions.

        Raises:
            UnsupportedContentError: If no archetype accepts the listing.
            MalformedArchiveError: If the selected archetype cannot locate its anchor file.
        """
        archetype = self.classify(files, game_id)
        if archetype is None:
            raise UnsupportedContentError(
                "Unsupported content", details=f"game '{game_id}', {len(files)} entries"
            )
        instructions = archetype.build(files, context or BuildContext())
        logger.info(
            f"Installing with {archetype.key}: {len(instructions)} instruction(s)"
        )
        return InstallPlan(
            archetype_key=archetype.key,
            instructions=instructions,
            requires_ue4ss=archetype.requires_ue4ss,
        )


def create_default_cascade(game_id: str = GAME_ID) -> ArchetypeCascade:
    """Return a cascade holding the built-in Grounded archetypes."""
    cascade = ArchetypeCascade(game_id, DEFAULT_ARCHETYPES)
    cascade.validate()
    return cascade
