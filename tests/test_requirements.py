import pytest

from grounded_modkit.download.requirements import (
    PLUGIN_REQUIREMENT_UE4SS,
    PLUGIN_REQUIREMENTS,
    PluginRequirement,
    ResolutionOverride,
    apply_override,
)

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]


def test_ue4ss_requirement():
    assert PLUGIN_REQUIREMENTS == [PLUGIN_REQUIREMENT_UE4SS]
    assert PLUGIN_REQUIREMENT_UE4SS.assembly_file_name == "UE4SS.dll"
    assert PLUGIN_REQUIREMENT_UE4SS.github_url.endswith("/UE4SS-RE/RE-UE4SS")
    assert PLUGIN_REQUIREMENT_UE4SS.file_archive_pattern.search(
        "UE4SS_v3.0.1-394-g437a8ff.zip"
    )
    assert not PLUGIN_REQUIREMENT_UE4SS.file_archive_pattern.search(
        "zDEV-UE4SS_v3.0.1-394-g437a8ff.zip"
    )


def test_override_for_version():
    override = ResolutionOverride.for_version(PLUGIN_REQUIREMENT_UE4SS, "3.0.1")
    assert override.archive_file_name == "UE4SS_v3.0.1.zip"


def test_override_requires_template():
    requirement = PluginRequirement(
        name="Tool", user_facing_name="Tool", github_url="https://example.invalid"
    )
    with pytest.raises(ValueError):
        ResolutionOverride.for_version(requirement, "1.0.0")


def test_apply_override_leaves_requirement_untouched():
    override = ResolutionOverride("UE4SS_v3.0.1.zip")
    effective = apply_override(PLUGIN_REQUIREMENT_UE4SS, override)

    assert effective.file_archive_pattern is None
    assert effective.archive_file_name == "UE4SS_v3.0.1.zip"
    assert PLUGIN_REQUIREMENT_UE4SS.file_archive_pattern is not None
    assert PLUGIN_REQUIREMENT_UE4SS.archive_file_name is None


def test_apply_no_override():
    assert apply_override(PLUGIN_REQUIREMENT_UE4SS, None) is PLUGIN_REQUIREMENT_UE4SS


def test_find_helpers(fake_host):
    fake_host.add_mod("ue4ss", files=["ue4ss\\UE4SS.dll"])
    fake_host.add_download("d1", "C:\\Downloads\\UE4SS_v3.0.1-394-g437a8ff.zip")

    assert PLUGIN_REQUIREMENT_UE4SS.find_mod(fake_host).id == "ue4ss"
    assert PLUGIN_REQUIREMENT_UE4SS.find_download_id(fake_host) == "d1"
