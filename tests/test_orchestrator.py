"""Tests for the end-to-end scaffolding pipeline."""
import json
from datetime import date

import pytest

from sprout.core.errors import (
    ExternalCommandFailure,
    InvalidManifest,
    PreconditionFailure,
    TemplateNotFoundError,
)
from sprout.core.manifest import merge_fields
from sprout.core.orchestrator import RunState, ScaffoldOrchestrator
from sprout.core.outcome import Outcome


@pytest.fixture
def workspace(tmp_path):
    base = tmp_path / "work"
    base.mkdir()
    return base


@pytest.fixture
def orchestrator(workspace, fake_run, all_managers_installed):
    return ScaffoldOrchestrator(base_directory=workspace)


class TestEndToEnd:
    """Test a full run against a fresh directory."""

    def test_readme_demo_scenario(self, orchestrator, workspace, fake_run, make_config):
        config = make_config(target_directory="demo", files=("README.md",), packages=("left-pad",))

        report = orchestrator.run(config)

        package_dir = workspace / "demo"
        assert report.state.package_directory == package_dir.resolve()
        assert (package_dir / "README.md").read_text() == "# demo"
        assert fake_run.commands(("npm", "install")) == [("npm", "install", "left-pad")]
        assert fake_run.commands(("git", "commit")) == [("git", "commit", "-m", "Initial commit")]
        assert fake_run.commands(("git", "branch")) == [("git", "branch", "-M", "main")]

    def test_command_order(self, orchestrator, fake_run, make_config):
        orchestrator.run(make_config(target_directory="demo"))

        assert [cmd[:2] for cmd, _ in fake_run.calls] == [
            ("npm", "init"),
            ("git", "init"),
            ("npm", "install"),
            ("git", "add"),
            ("git", "diff"),
            ("git", "commit"),
            ("git", "branch"),
        ]

    def test_every_command_runs_in_package_directory(self, orchestrator, workspace, fake_run, make_config):
        orchestrator.run(make_config(target_directory="demo"))

        assert {cwd for _, cwd in fake_run.calls} == {(workspace / "demo").resolve()}

    def test_runs_in_base_directory_without_target(self, orchestrator, workspace, make_config):
        report = orchestrator.run(make_config())

        assert report.state.package_directory == workspace.resolve()
        assert (workspace / "README.md").exists()

    def test_init_args_forwarded(self, orchestrator, fake_run, make_config):
        orchestrator.run(make_config(target_directory="demo", init_args=("--yes", "--scope=@acme")))

        assert fake_run.commands(("npm", "init")) == [("npm", "init", "--yes", "--scope=@acme")]

    def test_main_source_and_renames(self, orchestrator, workspace, make_config):
        config = make_config(
            target_directory="my-lib",
            main_name="my-lib",
            main_source_file_name="src/my-lib.js",
            files=("README.md", "gitignore"),
            rename_files={"gitignore": ".gitignore"},
        )

        orchestrator.run(config)

        package_dir = workspace / "my-lib"
        assert (package_dir / ".gitignore").read_text() == "node_modules/\n"
        assert not (package_dir / "gitignore").exists()
        main_source = (package_dir / "src" / "my-lib.js").read_text()
        assert f"(c) {date.today().year} Acme Inc" in main_source
        assert "export const myLib = 1;" in main_source

    def test_nested_target_directories_created(self, orchestrator, workspace, template_dir, make_config):
        (template_dir / "docs").mkdir()
        (template_dir / "docs" / "guide.md").write_text("{{PROJECT-NAME}} guide")
        config = make_config(
            target_directory="demo",
            files=("docs/guide.md",),
            rename_files={"docs/guide.md": "docs/en/intro.md"},
        )

        report = orchestrator.run(config)

        assert (workspace / "demo" / "docs" / "en" / "intro.md").read_text() == "demo guide"
        assert report.outcome_of("directories") is Outcome.APPLIED

    def test_manifest_transform_applied(self, orchestrator, workspace, make_config):
        config = make_config(
            target_directory="demo",
            manifest_transform=merge_fields({"main": "dist/{{PROJECT-NAME}}.js"}),
        )

        report = orchestrator.run(config)

        manifest = json.loads((workspace / "demo" / "package.json").read_text())
        assert manifest["main"] == "dist/demo.js"
        assert manifest["name"] == "demo"
        assert report.outcome_of("manifest-update") is Outcome.APPLIED

    def test_identity_transform_skips_write(self, orchestrator, workspace, make_config):
        report = orchestrator.run(make_config(target_directory="demo"))

        assert report.outcome_of("manifest-update") is Outcome.SKIPPED

    def test_submodules_in_order_with_duplicates_skipped(self, orchestrator, fake_run, make_config):
        config = make_config(
            target_directory="demo",
            git_submodules=[
                {"url": "git@example.test:core.git", "path": "src/core"},
                {"url": "git@example.test:ui.git", "path": "src/ui", "branch": "develop"},
                {"url": "git@example.test:other.git", "path": "src/core"},
            ],
        )

        orchestrator.run(config)

        assert fake_run.commands(("git", "submodule")) == [
            ("git", "submodule", "add", "git@example.test:core.git", "src/core"),
            ("git", "submodule", "add", "git@example.test:ui.git", "src/ui"),
        ]
        assert fake_run.commands(("git", "config")) == [
            ("git", "config", "-f", ".gitmodules", "submodule.src/core.branch", "main"),
            ("git", "config", "-f", ".gitmodules", "submodule.src/ui.branch", "develop"),
        ]

    def test_submodule_path_spellings_are_one_submodule(self, orchestrator, fake_run, make_config):
        config = make_config(
            target_directory="demo",
            git_submodules=[
                {"url": "git@example.test:core.git", "path": "src/core"},
                {"url": "git@example.test:core.git", "path": "src/core/"},
                {"url": "git@example.test:core.git", "path": "./src/core"},
            ],
        )

        orchestrator.run(config)

        assert fake_run.commands(("git", "submodule")) == [
            ("git", "submodule", "add", "git@example.test:core.git", "src/core"),
        ]
        assert fake_run.commands(("git", "config")) == [
            ("git", "config", "-f", ".gitmodules", "submodule.src/core.branch", "main"),
        ]

    def test_preferred_yarn_used_for_init_and_install(self, orchestrator, fake_run, make_config):
        from sprout.config.models import PackageManagerType

        orchestrator.run(make_config(
            target_directory="demo",
            preferred_package_manager=PackageManagerType.YARN,
        ))

        assert fake_run.commands(("yarn", "init")) == [("yarn", "init")]
        assert fake_run.commands(("yarn", "add")) == [("yarn", "add", "left-pad")]

    def test_existing_parent_repository_is_reused(self, orchestrator, workspace, fake_run, make_config):
        (workspace / ".git").mkdir()

        report = orchestrator.run(make_config(target_directory="packages/demo"))

        assert fake_run.commands(("git", "init")) == []
        assert report.outcome_of("git-init") is Outcome.SKIPPED


class TestIdempotency:
    """Test that re-running converges without clobbering anything."""

    def test_second_run_changes_nothing(self, orchestrator, workspace, fake_run, make_config):
        config = make_config(
            target_directory="demo",
            manifest_transform=merge_fields({"license": "MIT"}),
            git_submodules=[{"url": "git@example.test:core.git", "path": "src/core"}],
        )
        orchestrator.run(config)

        readme = workspace / "demo" / "README.md"
        readme.write_text("# demo\n\nUser edits.\n")
        manifest_before = (workspace / "demo" / "package.json").read_text()
        fake_run.calls.clear()
        fake_run.staged_changes = False

        report = orchestrator.run(config)

        assert readme.read_text() == "# demo\n\nUser edits.\n"
        assert (workspace / "demo" / "package.json").read_text() == manifest_before
        assert fake_run.commands(("git", "init")) == []
        assert fake_run.commands(("git", "submodule")) == []
        assert fake_run.commands(("git", "commit")) == []
        for step in ("directories", "git-init", "templates", "manifest-update", "submodules", "commit"):
            assert report.outcome_of(step) is Outcome.SKIPPED, step


class TestFailures:
    """Test that hard failures stop the pipeline where they happen."""

    def test_missing_manifest_is_precondition_failure(self, workspace, fake_run, all_managers_installed, make_config):
        orchestrator = ScaffoldOrchestrator(base_directory=workspace)

        # init "succeeds" but writes nothing
        def init_without_manifest(*args, **kwargs):
            return None

        orchestrator.package_manager.init = init_without_manifest

        with pytest.raises(PreconditionFailure, match="package.json did not exist"):
            orchestrator.run(make_config(target_directory="demo"))

        assert (workspace / "demo").is_dir()
        assert fake_run.calls == []

    def test_init_failure_aborts(self, orchestrator, fake_run, make_config):
        fake_run.fail_on = lambda cmd: cmd[:2] == ("npm", "init")

        with pytest.raises(ExternalCommandFailure):
            orchestrator.run(make_config(target_directory="demo"))

        assert len(fake_run.calls) == 1

    def test_invalid_manifest_aborts_before_submodules(self, orchestrator, workspace, fake_run, make_config):
        package_dir = workspace / "demo"
        package_dir.mkdir()
        (package_dir / "package.json").write_text('"just a string"')

        with pytest.raises(InvalidManifest):
            orchestrator.run(make_config(
                target_directory="demo",
                git_submodules=[{"url": "u", "path": "core"}],
            ))

        assert (package_dir / "README.md").exists()
        assert fake_run.commands(("git", "submodule")) == []
        assert fake_run.commands(("npm", "install")) == []

    def test_missing_template_aborts(self, orchestrator, fake_run, make_config):
        with pytest.raises(TemplateNotFoundError):
            orchestrator.run(make_config(target_directory="demo", files=("MISSING.md",)))

        assert fake_run.commands(("npm", "install")) == []

    def test_submodule_failure_is_fail_fast(self, orchestrator, fake_run, make_config):
        fake_run.fail_on = lambda cmd: cmd[:3] == ("git", "submodule", "add") and cmd[4] == "src/a"
        config = make_config(
            target_directory="demo",
            git_submodules=[
                {"url": "git@example.test:a.git", "path": "src/a"},
                {"url": "git@example.test:b.git", "path": "src/b"},
            ],
        )

        with pytest.raises(ExternalCommandFailure):
            orchestrator.run(config)

        assert fake_run.commands(("git", "submodule")) == [
            ("git", "submodule", "add", "git@example.test:a.git", "src/a"),
        ]
        assert fake_run.commands(("npm", "install")) == []

    def test_install_failure_skips_commit(self, orchestrator, workspace, fake_run, make_config):
        fake_run.fail_on = lambda cmd: cmd[:2] == ("npm", "install")

        with pytest.raises(ExternalCommandFailure):
            orchestrator.run(make_config(target_directory="demo"))

        assert (workspace / "demo" / "README.md").exists()
        assert fake_run.commands(("git", "commit")) == []

    def test_rerun_after_failure_converges(self, orchestrator, workspace, fake_run, make_config):
        config = make_config(target_directory="demo")
        fake_run.fail_on = lambda cmd: cmd[:2] == ("npm", "install")
        with pytest.raises(ExternalCommandFailure):
            orchestrator.run(config)

        fake_run.fail_on = None
        report = orchestrator.run(config)

        assert report.outcome_of("commit") is Outcome.APPLIED
        assert report.outcome_of("templates") is Outcome.SKIPPED


class TestRunState:

    def test_package_directory_cannot_change(self, tmp_path):
        state = RunState(root_directory=tmp_path).with_package_directory(tmp_path / "a")

        assert state.with_package_directory(tmp_path / "a").package_directory == tmp_path / "a"
        with pytest.raises(PreconditionFailure):
            state.with_package_directory(tmp_path / "b")

    def test_derived_directories(self, tmp_path, make_config):
        state = RunState(root_directory=tmp_path).with_package_directory(tmp_path)
        config = make_config()

        assert state.source_directory(config) == tmp_path / "src"
        assert state.build_directory(config) == tmp_path / "dist"

    def test_unresolved_package_directory(self, tmp_path, make_config):
        with pytest.raises(PreconditionFailure):
            RunState(root_directory=tmp_path).source_directory(make_config())
