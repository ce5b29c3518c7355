"""Tests for agntc.sources.parser module."""

from pathlib import Path

import pytest

from agntc.sources.parser import (
    PathNotFoundError,
    SourceError,
    build_source_from_key,
    parse_source,
    source_dir_from_key,
)


class TestParseShorthand:
    """Tests for owner/repo[@ref] sources."""

    def test_owner_repo(self):
        """Plain shorthand resolves to a GitHub clone URL."""
        source = parse_source("acme/skills")

        assert source.kind == "shorthand"
        assert source.owner == "acme"
        assert source.repo == "skills"
        assert source.ref is None
        assert source.manifest_key == "acme/skills"
        assert source.clone_url == "https://github.com/acme/skills.git"

    def test_with_ref(self):
        """A ref after @ is captured."""
        source = parse_source("acme/skills@v1.2")

        assert source.ref == "v1.2"
        assert source.manifest_key == "acme/skills"

    def test_ref_splits_on_first_at_only(self):
        """Later @ characters belong to the ref."""
        source = parse_source("acme/skills@feature@2")

        assert source.repo == "skills"
        assert source.ref == "feature@2"

    def test_surrounding_whitespace_ignored(self):
        """Input is trimmed."""
        assert parse_source("  acme/skills  ").manifest_key == "acme/skills"

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            ("", "source cannot be empty"),
            ("acme", "owner/repo format"),
            ("acme/skills/extra", "too many slashes"),
            ("acme/", "repo cannot be empty"),
            ("acme/skills@", "ref cannot be empty"),
        ],
    )
    def test_invalid_shorthand(self, raw: str, message: str):
        """Malformed shorthand raises SourceError."""
        with pytest.raises(SourceError) as exc_info:
            parse_source(raw)
        assert message in str(exc_info.value)


class TestParseUrls:
    """Tests for HTTPS and SSH sources."""

    def test_https_url(self):
        """HTTPS URLs keep their host in the clone URL."""
        source = parse_source("https://gitlab.com/acme/skills.git")

        assert source.kind == "https"
        assert source.manifest_key == "acme/skills"
        assert source.clone_url == "https://gitlab.com/acme/skills.git"

    def test_https_url_with_ref(self):
        """A ref may follow an HTTPS URL."""
        source = parse_source("https://github.com/acme/skills@main")

        assert source.ref == "main"
        assert source.manifest_key == "acme/skills"

    def test_https_nested_groups_use_last_two_segments(self):
        """Nested group paths keep a two-part key."""
        source = parse_source("https://gitlab.com/org/team/acme/skills")

        assert source.manifest_key == "acme/skills"

    def test_ssh_url(self):
        """SSH URLs resolve to the same key as HTTPS."""
        source = parse_source("git@github.com:acme/skills.git")

        assert source.kind == "ssh"
        assert source.manifest_key == "acme/skills"
        assert source.clone_url == "git@github.com:acme/skills.git"

    def test_ssh_url_with_ref(self):
        """A ref may follow the .git suffix."""
        source = parse_source("git@github.com:acme/skills.git@v2")

        assert source.ref == "v2"

    def test_ssh_url_missing_path(self):
        """SSH URL without a path is rejected."""
        with pytest.raises(SourceError, match="missing owner/repo"):
            parse_source("git@github.com:")

    @pytest.mark.parametrize(
        "raw",
        [
            "acme/skills",
            "acme/skills@v1",
            "https://github.com/acme/skills",
            "https://github.com/acme/skills.git@v1",
            "git@github.com:acme/skills.git",
            "git@example.org:acme/skills@dev",
        ],
    )
    def test_manifest_key_independent_of_form(self, raw: str):
        """Every form of one repository shares a manifest key."""
        assert parse_source(raw).manifest_key == "acme/skills"


class TestParseTreeUrl:
    """Tests for GitHub tree URLs pointing at one bundle."""

    def test_tree_url(self):
        """Tree URLs select a bundle inside a repository."""
        source = parse_source("https://github.com/acme/skills/tree/main/planning")

        assert source.kind == "direct-path"
        assert source.ref == "main"
        assert source.target_plugin == "planning"
        assert source.manifest_key == "acme/skills/planning"
        assert source.clone_url == "https://github.com/acme/skills.git"

    def test_tree_url_rejects_ref_suffix(self):
        """Tree URLs already carry a ref."""
        with pytest.raises(SourceError, match="cannot have @ref"):
            parse_source("https://github.com/acme/skills/tree/main/planning@v1")

    def test_tree_url_requires_plugin_path(self):
        """A tree URL must name a path after the ref."""
        with pytest.raises(SourceError, match="missing plugin path"):
            parse_source("https://github.com/acme/skills/tree/main")


class TestParseLocalPath:
    """Tests for local directory sources."""

    def test_absolute_path(self, temp_dir: Path):
        """Absolute paths become their resolved key."""
        source = parse_source(str(temp_dir))

        assert source.kind == "local-path"
        assert source.is_local
        assert source.manifest_key == str(temp_dir.resolve())
        assert source.resolved_path == temp_dir.resolve()
        assert source.clone_url is None

    def test_relative_path_uses_base_dir(self, temp_dir: Path):
        """Relative paths resolve against base_dir."""
        (temp_dir / "bundle").mkdir()

        source = parse_source("./bundle", base_dir=temp_dir)

        assert source.resolved_path == (temp_dir / "bundle").resolve()

    def test_missing_path(self, temp_dir: Path):
        """A path that does not exist raises PathNotFoundError."""
        with pytest.raises(PathNotFoundError):
            parse_source(str(temp_dir / "missing"))

    def test_file_is_not_a_source(self, temp_dir: Path):
        """A regular file is not a valid local source."""
        (temp_dir / "file.txt").write_text("x")

        with pytest.raises(PathNotFoundError):
            parse_source(str(temp_dir / "file.txt"))


class TestKeyHelpers:
    """Tests for manifest-key helpers."""

    def test_build_from_key_without_url(self):
        """Without a stored URL the GitHub URL is used."""
        source = build_source_from_key("acme/skills", "main")

        assert source.kind == "shorthand"
        assert source.clone_url == "https://github.com/acme/skills.git"
        assert source.ref == "main"

    def test_build_from_key_with_ssh_url(self):
        """Stored SSH URLs are kept."""
        source = build_source_from_key("acme/skills/planning", None, "git@github.com:acme/skills.git")

        assert source.kind == "ssh"
        assert source.clone_url == "git@github.com:acme/skills.git"
        assert source.target_plugin == "planning"
        assert source.manifest_key == "acme/skills/planning"

    def test_build_from_invalid_key(self):
        """Keys that are not owner/repo are rejected."""
        with pytest.raises(SourceError):
            build_source_from_key("/abs/path", None)

    def test_source_dir_for_repo_key(self, temp_dir: Path):
        """Repository keys map to the clone root."""
        assert source_dir_from_key(temp_dir, "acme/skills") == temp_dir

    def test_source_dir_for_collection_key(self, temp_dir: Path):
        """Collection member keys map to a subdirectory."""
        assert source_dir_from_key(temp_dir, "acme/skills/planning") == temp_dir / "planning"
