"""
Tests for exclusion rules (.gitignore and exclude patterns).
"""

from ctxsync.exclusion import ExclusionFilter, find_gitignore, match_pattern


class TestMatchPattern:
    """Test suite for the simple glob matcher."""

    def test_star_matches_any_run(self):
        """* matches any run of characters."""
        assert match_pattern("module.pyc", "*.pyc")
        assert match_pattern("pkg.egg-info", "*.egg-info")
        assert not match_pattern("module.py", "*.pyc")

    def test_star_crosses_separators(self):
        """* also matches '/' when testing a whole relative path."""
        assert match_pattern("src/module.pyc", "*.pyc")
        assert match_pattern("src/vendor/lib.js", "src/*.js")

    def test_question_mark_matches_one_character(self):
        """? matches exactly one character."""
        assert match_pattern("file1.txt", "file?.txt")
        assert not match_pattern("file12.txt", "file?.txt")
        assert not match_pattern("file.txt", "file?.txt")

    def test_whole_string_must_match(self):
        """Patterns without wildcards only match the exact string."""
        assert match_pattern("node_modules", "node_modules")
        assert not match_pattern("my_node_modules", "node_modules")
        assert not match_pattern("node_modules_old", "node_modules")

    def test_other_characters_are_literal(self):
        """Brackets, dots and plus signs are not special."""
        assert match_pattern("[ab].txt", "[ab].txt")
        assert not match_pattern("a.txt", "[ab].txt")
        assert not match_pattern("axtxt", "a.txt")
        assert match_pattern("c++", "c++")

    def test_case_sensitive(self):
        """Matching is case-sensitive."""
        assert not match_pattern("Build", "build")


class TestExclusionFilter:
    """Test suite for ExclusionFilter."""

    def test_gitignore_rules_applied(self, project_dir):
        """Files and directories listed in .gitignore are excluded."""
        (project_dir / ".gitignore").write_text("*.log\nbuild/\n")
        exclusion = ExclusionFilter.for_root(project_dir)

        assert exclusion.is_excluded(project_dir / "app.log", is_dir=False)
        assert exclusion.is_excluded(project_dir / "src" / "debug.log", is_dir=False)
        assert exclusion.is_excluded(project_dir / "build", is_dir=True)
        assert not exclusion.is_excluded(project_dir / "main.py", is_dir=False)

    def test_directory_only_rule_does_not_match_files(self, project_dir):
        """A trailing-slash rule only excludes directories."""
        (project_dir / ".gitignore").write_text("build/\n")
        exclusion = ExclusionFilter.for_root(project_dir)

        assert exclusion.is_excluded(project_dir / "build", is_dir=True)
        assert not exclusion.is_excluded(project_dir / "build", is_dir=False)

    def test_gitignore_negation(self, project_dir):
        """Negated .gitignore rules re-include files."""
        (project_dir / ".gitignore").write_text("*.log\n!keep.log\n")
        exclusion = ExclusionFilter.for_root(project_dir)

        assert exclusion.is_excluded(project_dir / "app.log", is_dir=False)
        assert not exclusion.is_excluded(project_dir / "keep.log", is_dir=False)

    def test_git_directory_always_excluded(self, project_dir):
        """.git is excluded even without a .gitignore."""
        exclusion = ExclusionFilter.for_root(project_dir)

        assert exclusion.is_excluded(project_dir / ".git", is_dir=True)

    def test_ancestor_gitignore_used(self, temp_dir):
        """The nearest .gitignore above the root applies, relative to its own directory."""
        (temp_dir / ".gitignore").write_text("sub/ignored.txt\n")
        root = temp_dir / "sub"
        root.mkdir()

        exclusion = ExclusionFilter.for_root(root)

        assert exclusion.gitignore_root == temp_dir.resolve()
        assert exclusion.is_excluded(root / "ignored.txt", is_dir=False)
        assert not exclusion.is_excluded(root / "kept.txt", is_dir=False)

    def test_exclude_pattern_matches_any_segment(self, project_dir):
        """Exclude patterns match every segment of the relative path."""
        exclusion = ExclusionFilter.for_root(project_dir, ["node_modules", "*.min.js"])

        assert exclusion.is_excluded(project_dir / "node_modules", is_dir=True)
        assert exclusion.is_excluded(project_dir / "web" / "node_modules", is_dir=True)
        assert exclusion.is_excluded(project_dir / "static" / "app.min.js", is_dir=False)
        assert not exclusion.is_excluded(project_dir / "static" / "app.js", is_dir=False)

    def test_exclude_pattern_matches_whole_relative_path(self, project_dir):
        """Exclude patterns also match the full relative path."""
        exclusion = ExclusionFilter.for_root(project_dir, ["docs/*.txt"])

        assert exclusion.is_excluded(project_dir / "docs" / "notes.txt", is_dir=False)
        assert not exclusion.is_excluded(project_dir / "notes.txt", is_dir=False)

    def test_root_ancestors_do_not_match(self, temp_dir):
        """Directory names above the root never trigger an exclude pattern."""
        root = temp_dir / "build" / "project"
        root.mkdir(parents=True)

        exclusion = ExclusionFilter.for_root(root, ["build"])

        assert not exclusion.is_excluded(root / "main.py", is_dir=False)

    def test_root_itself_not_excluded(self, project_dir):
        """The root directory is never excluded."""
        exclusion = ExclusionFilter.for_root(project_dir, ["*"])

        assert not exclusion.is_excluded(project_dir.resolve(), is_dir=True)


def test_find_gitignore_nearest(temp_dir):
    """find_gitignore returns the closest .gitignore walking upward."""
    (temp_dir / ".gitignore").write_text("outer\n")
    inner = temp_dir / "a" / "b"
    inner.mkdir(parents=True)
    (temp_dir / "a" / ".gitignore").write_text("inner\n")

    assert find_gitignore(inner) == (temp_dir / "a" / ".gitignore").resolve()
