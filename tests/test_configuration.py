"""
Tests for configuration models and effective-configuration resolution.
"""

import json

import pytest

from gitver.core.errors import ConfigurationError
from gitver.core.models import (
    AssemblyVersioningScheme,
    Branch,
    BranchConfig,
    BranchingModel,
    Commit,
    GitVersionConfig,
    IncrementStrategy,
    VersioningMode,
    config_for_model,
)
from gitver.operations.configuration import (
    branch_matches,
    find_branch_config,
    resolve_effective_configuration,
)

from conftest import sha

TIP = Commit(sha=sha(1))


def local(name: str) -> Branch:
    return Branch(name=name, tip=TIP)


def remote(name: str) -> Branch:
    return Branch(name=name, tip=TIP, is_remote=True, remote=name.split("/", 1)[0])


class TestBranchMatching:

    @pytest.mark.parametrize("name", ["release/1.0", "Release/1.0", "release-1.0", "RELEASE-2"])
    def test_anchored_case_insensitive_match(self, name):
        assert branch_matches("release", local(name))

    def test_not_matched_in_the_middle(self):
        assert not branch_matches("release", local("prerelease/1.0"))

    def test_remote_prefix(self):
        assert branch_matches(r"releases?[/-]", remote("origin/release-1.0"))
        assert not branch_matches(r"releases?[/-]", local("origin/release-1.0"))

    def test_remote_prefix_wraps_alternation(self):
        assert branch_matches(r"master$|main$", remote("upstream/main"))
        assert not branch_matches(r"master$|main$", remote("upstream/mainline"))

    def test_first_configured_match_wins(self):
        config = GitVersionConfig(branches={
            "feature": BranchConfig(tag="first"),
            "features?[/-]": BranchConfig(tag="second"),
        })
        key, branch_config = find_branch_config(local("feature/x"), config)
        assert key == "feature"
        assert branch_config.tag == "first"

    def test_no_match_uses_empty_override(self, config):
        key, branch_config = find_branch_config(local("experiment"), config)
        assert key == ""
        assert branch_config == BranchConfig()


class TestResolveEffectiveConfiguration:

    def test_develop_overrides(self, config):
        key, effective = resolve_effective_configuration(TIP, local("develop"), config)
        assert key == r"develop(ment)?$|dev$"
        assert effective.branch_key == key
        assert effective.mode == VersioningMode.CONTINUOUS_DEPLOYMENT
        assert effective.increment == IncrementStrategy.MINOR
        assert effective.tag == "unstable"
        assert effective.track_merge_target is True
        assert effective.prevent_increment_of_merged_branch_version is False

    def test_global_only_values(self):
        config = GitVersionConfig.default().model_copy(update={
            "next_version": "3.0.0",
            "continuous_delivery_fallback_tag": "nightly",
            "assembly_versioning_scheme": AssemblyVersioningScheme.MAJOR_MINOR,
        })
        _, effective = resolve_effective_configuration(TIP, local("master"), config)
        assert effective.next_version == "3.0.0"
        assert effective.continuous_delivery_fallback_tag == "nightly"
        assert effective.assembly_versioning_scheme == AssemblyVersioningScheme.MAJOR_MINOR
        assert effective.tag_prefix == "[vV]"
        assert effective.tag == ""

    def test_unmatched_branch_uses_defaults(self, config):
        key, effective = resolve_effective_configuration(TIP, local("experiment"), config)
        assert key == ""
        assert effective.mode == VersioningMode.CONTINUOUS_DELIVERY
        assert effective.increment == IncrementStrategy.PATCH
        assert effective.tag is None

    def test_override_supplies_value_missing_globally(self):
        config = GitVersionConfig(
            increment=None,
            branches={"hotfix": BranchConfig(increment=IncrementStrategy.PATCH)},
        )
        _, effective = resolve_effective_configuration(TIP, local("hotfix/1"), config)
        assert effective.increment == IncrementStrategy.PATCH

    @pytest.mark.parametrize("field", [
        "mode",
        "increment",
        "prevent_increment_of_merged_branch_version",
        "track_merge_target",
        "assembly_versioning_scheme",
    ])
    def test_missing_required_field(self, field):
        config = GitVersionConfig(branches={"support[/-]": BranchConfig(tag="")}, **{field: None})
        with pytest.raises(ConfigurationError) as excinfo:
            resolve_effective_configuration(TIP, local("support/1.x"), config)
        assert excinfo.value.field == field
        assert excinfo.value.branch_key == "support[/-]"
        assert field in str(excinfo.value)
        assert "support[/-]" in str(excinfo.value)

    def test_effective_configuration_is_frozen(self, config):
        _, effective = resolve_effective_configuration(TIP, local("master"), config)
        with pytest.raises(Exception):
            effective.tag = "changed"


class TestConfigModel:

    def test_invalid_branch_pattern_rejected(self):
        with pytest.raises(ValueError):
            GitVersionConfig(branches={"release[": BranchConfig()})

    def test_invalid_next_version_rejected(self):
        with pytest.raises(ValueError):
            GitVersionConfig(next_version="two")

    def test_presets(self):
        gitflow = config_for_model(BranchingModel.GITFLOW)
        githubflow = config_for_model(BranchingModel.GITHUBFLOW)
        assert len(gitflow.branches) == 7
        assert r"develop(ment)?$|dev$" not in githubflow.branches
        assert r"master$|main$" in githubflow.branches

    def test_load_missing_file_returns_gitflow(self, tmp_path):
        config = GitVersionConfig.load(tmp_path / "GitVersion.json")
        assert config == GitVersionConfig.default()

    def test_save_and_load(self, tmp_path):
        path = GitVersionConfig.githubflow().save(tmp_path / "GitVersion.json")
        loaded = GitVersionConfig.load(path)
        assert loaded == GitVersionConfig.githubflow()
        assert json.loads(path.read_text())["mode"] == "continuous_delivery"

    def test_load_explicit_null_default(self, tmp_path):
        path = tmp_path / "GitVersion.json"
        path.write_text(json.dumps({"track_merge_target": None, "branches": {}}))
        config = GitVersionConfig.load(path)
        with pytest.raises(ConfigurationError) as excinfo:
            resolve_effective_configuration(TIP, local("master"), config)
        assert excinfo.value.field == "track_merge_target"
        assert excinfo.value.branch_key == ""

    @pytest.mark.parametrize("content", ["{not json", json.dumps({"mode": "sometimes"})])
    def test_load_malformed_file(self, tmp_path, content):
        path = tmp_path / "GitVersion.json"
        path.write_text(content)
        with pytest.raises(ConfigurationError):
            GitVersionConfig.load(path)

    def test_for_project_precedence(self, tmp_path, monkeypatch):
        GitVersionConfig(tag_prefix="release-", next_version="1.0.0").save(tmp_path / "GitVersion.json")
        monkeypatch.setenv("GITVER_NEXT_VERSION", "2.0.0")
        monkeypatch.delenv("GITVER_TAG_PREFIX", raising=False)
        monkeypatch.delenv("GITVER_MODE", raising=False)

        config = GitVersionConfig.for_project(tmp_path)
        assert config.tag_prefix == "release-"
        assert config.next_version == "2.0.0"

        config = GitVersionConfig.for_project(tmp_path, next_version="4.0.0")
        assert config.next_version == "4.0.0"

    def test_for_project_invalid_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITVER_MODE", "whenever")
        with pytest.raises(ConfigurationError):
            GitVersionConfig.for_project(tmp_path)
