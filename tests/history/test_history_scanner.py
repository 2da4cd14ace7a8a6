"""Tests for the history scan of last modifications and last tags."""

import logging

import pytest

from histver.history.models import ZERO_ID
from histver.logging_config import MODULE_ATTR
from histver.project import ModuleId
from histver.semver import SemVer


@pytest.fixture
def flat_modules(git_project):
    """Nameless aggregator with modules alpha and beta; beta depends on alpha."""
    git_project.manifest("", None, modules=["alpha", "beta"])
    git_project.manifest("alpha", "alpha")
    git_project.write("alpha/src/alpha/__init__.py", "VALUE = 1\n")
    git_project.manifest("beta", "beta", requires=["alpha"])
    git_project.write("beta/src/beta/__init__.py", "from alpha import VALUE\n")
    return git_project


class TestSingleModule:
    """Test HistoryScanner.resolve on one module."""

    def test_no_commits(self, single_module):
        session = single_module.session()
        state = session.history_state("alpha")
        assert state.last_modification.is_dirty
        assert state.last_modification.timestamp == session.start_time
        assert not state.is_tagged
        assert state.last_tag.version == SemVer(0, 1, 0)

    def test_tagged_head(self, single_module):
        c1 = single_module.commit("initial")
        single_module.tag("alpha/1.0.0")
        state = single_module.session().history_state("alpha")
        assert state.last_tag.sha == c1
        assert state.last_tag.ref_name == "alpha/1.0.0"
        assert state.last_tag.version == SemVer(1, 0, 0)
        # the tag is the modification boundary
        assert state.last_modification.sha == c1
        assert state.last_modification.seniority == 1

    def test_modification_after_tag(self, single_module):
        c1 = single_module.commit("initial")
        single_module.tag("alpha/1.0.0")
        single_module.write("README.md", "unrelated\n")
        single_module.commit("unrelated")
        single_module.write("src/alpha/__init__.py", "VALUE = 2\n")
        c3 = single_module.commit("observed")

        state = single_module.session().history_state("alpha")
        assert state.last_modification.sha == c3
        assert state.last_modification.seniority == 1
        assert state.last_tag.sha == c1

    def test_unrelated_commits_after_tag(self, single_module):
        c1 = single_module.commit("initial")
        single_module.tag("alpha/1.0.0")
        single_module.write("README.md", "unrelated\n")
        single_module.commit("unrelated")

        state = single_module.session().history_state("alpha")
        assert state.last_modification.sha == c1
        assert state.last_modification.seniority == 2

    def test_dirty_working_tree(self, single_module):
        single_module.commit("initial")
        single_module.tag("alpha/1.0.0")
        single_module.write("src/alpha/__init__.py", "VALUE = 2\n")

        state = single_module.session().history_state("alpha")
        assert state.last_modification.is_dirty
        assert state.last_modification.sha == ZERO_ID
        assert state.is_tagged

    def test_never_tagged(self, single_module):
        c1 = single_module.commit("initial")
        single_module.write("README.md", "unrelated\n")
        single_module.commit("unrelated")

        state = single_module.session().history_state("alpha")
        assert not state.is_tagged
        assert state.last_tag.sha == ZERO_ID
        # the root commit modifies the module
        assert state.last_modification.sha == c1
        assert state.last_modification.seniority == 2

    def test_initial_version_from_config(self, single_module):
        single_module.commit("initial")
        state = single_module.session(initial_version="1.0.0-alpha").history_state("alpha")
        assert state.last_tag.version == SemVer.parse("1.0.0-alpha")

    def test_highest_tag_on_commit_wins(self, single_module):
        single_module.commit("initial")
        single_module.tag("alpha/1.0.0")
        single_module.tag("alpha/1.0.1", annotated=False)
        single_module.tag("alpha/not-a-version")

        state = single_module.session().history_state("alpha")
        assert state.last_tag.version == SemVer(1, 0, 1)

    def test_other_module_tags_are_ignored(self, single_module):
        single_module.commit("initial")
        single_module.tag("alphabet/9.0.0")
        assert not single_module.session().history_state("alpha").is_tagged

    def test_closest_tag_wins(self, single_module):
        single_module.commit("initial")
        single_module.tag("alpha/2.0.0")
        single_module.write("src/alpha/__init__.py", "VALUE = 2\n")
        c2 = single_module.commit("change")
        single_module.tag("alpha/1.5.0")

        state = single_module.session().history_state("alpha")
        assert state.last_tag.sha == c2
        assert state.last_tag.version == SemVer(1, 5, 0)

    def test_states_are_memoized(self, single_module):
        single_module.commit("initial")
        session = single_module.session()
        assert session.history_state("alpha") is session.history_state("default:alpha")


class TestModuleTags:
    """Test tag listing of a module."""

    def test_sorted_by_version(self, single_module):
        single_module.commit("one")
        single_module.tag("alpha/1.0.0")
        single_module.commit("two")
        single_module.tag("alpha/1.10.0")
        single_module.tag("alpha/1.9.0")
        single_module.tag("alpha/junk")

        tags = single_module.session().tags("alpha")
        assert [str(v) for _, v in tags] == ["1.10.0", "1.9.0", "1.0.0", "0.0.0-ILLEGAL+junk"]


class TestDependencies:
    """Test propagation of dependency modifications."""

    def test_dependency_modification_is_inherited(self, flat_modules):
        flat_modules.commit("initial")
        flat_modules.tag("alpha/1.0.0")
        flat_modules.tag("beta/1.0.0")
        flat_modules.write("alpha/src/alpha/__init__.py", "VALUE = 2\n")
        c2 = flat_modules.commit("change alpha")

        state = flat_modules.session().history_state("beta")
        assert state.last_modification.sha == c2
        assert state.last_modification.module == ModuleId("default", "alpha")
        assert state.last_tag.version == SemVer(1, 0, 0)

    def test_dirty_dependency_wins_over_dirty_module(self, flat_modules):
        flat_modules.commit("initial")
        flat_modules.write("alpha/src/alpha/__init__.py", "VALUE = 2\n")
        flat_modules.write("beta/src/beta/__init__.py", "VALUE = 3\n")

        state = flat_modules.session().history_state("beta")
        assert state.last_modification.is_dirty
        assert state.last_modification.module == ModuleId("default", "alpha")

    def test_own_modification_more_recent(self, flat_modules):
        flat_modules.commit("initial")
        flat_modules.write("alpha/src/alpha/__init__.py", "VALUE = 2\n")
        flat_modules.commit("change alpha")
        flat_modules.write("beta/src/beta/__init__.py", "VALUE = 3\n")
        c3 = flat_modules.commit("change beta")

        state = flat_modules.session().history_state("beta")
        assert state.last_modification.sha == c3
        assert state.last_modification.module == ModuleId("default", "beta")

    def test_dependent_is_independent_of_module(self, flat_modules):
        c1 = flat_modules.commit("initial")
        flat_modules.write("beta/src/beta/__init__.py", "VALUE = 3\n")
        flat_modules.commit("change beta")

        state = flat_modules.session().history_state("alpha")
        assert state.last_modification.sha == c1


class TestTracing:
    def test_decisions_are_tagged_with_their_module(self, flat_modules, caplog):
        flat_modules.commit("initial")
        with caplog.at_level(logging.DEBUG, logger="histver"):
            flat_modules.session().history_state("beta")

        tagged = {getattr(r, MODULE_ATTR, None) for r in caplog.records}
        assert {c.partition(":")[2] for c in tagged if c} == {"alpha", "beta"}
        beta = [
            r.getMessage()
            for r in caplog.records
            if getattr(r, MODULE_ATTR, "").endswith(":beta")
        ]
        assert "State of beta: never tagged" in beta
