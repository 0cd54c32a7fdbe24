"""Shared test fixtures for Sprout tests."""
import json
import subprocess
from pathlib import Path
from types import MappingProxyType, SimpleNamespace

import pytest

from sprout.config.models import Configuration, PackageManagerType, SubmoduleDescriptor
from sprout.core import config as runtime_config


class FakeRunner:
    """Stands in for subprocess.run and simulates the side effects we rely on."""

    def __init__(self):
        self.calls = []
        self.staged_changes = True
        self.fail_on = None  # predicate over the command tuple

    def __call__(self, cmd, cwd=None, stdout=None, stderr=None, check=False):
        cmd = tuple(cmd)
        cwd_path = Path(cwd) if cwd else Path.cwd()
        self.calls.append((cmd, cwd_path))

        returncode = 0
        if self.fail_on is not None and self.fail_on(cmd):
            returncode = 1
        elif len(cmd) > 1 and cmd[1] == "init" and cmd[0] in {"npm", "yarn", "pnpm"}:
            manifest = cwd_path / "package.json"
            if not manifest.exists():
                manifest.write_text(json.dumps({"name": cwd_path.name, "version": "1.0.0"}, indent=2))
        elif cmd[:2] == ("git", "init"):
            (cwd_path / ".git").mkdir(exist_ok=True)
        elif cmd[:3] == ("git", "submodule", "add"):
            (cwd_path / cmd[4]).mkdir(parents=True, exist_ok=True)
        elif cmd[:4] == ("git", "diff", "--cached", "--quiet"):
            returncode = 1 if self.staged_changes else 0

        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, list(cmd))
        return SimpleNamespace(returncode=returncode)

    def commands(self, prefix=()):
        prefix = tuple(prefix)
        return [cmd for cmd, _ in self.calls if cmd[:len(prefix)] == prefix]


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep environment overrides out of the tests."""
    for name in ("SPROUT_GIT", "SPROUT_CONFIG", "SPROUT_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    runtime_config.reset_settings()
    yield
    runtime_config.reset_settings()


@pytest.fixture
def fake_run(monkeypatch):
    """Replace subprocess.run for every external command."""
    runner = FakeRunner()
    monkeypatch.setattr("sprout.services.runner.subprocess.run", runner)
    return runner


@pytest.fixture
def all_managers_installed(monkeypatch):
    monkeypatch.setattr(
        "sprout.services.package_manager.shutil.which",
        lambda name: f"/usr/bin/{name}",
    )


@pytest.fixture
def template_dir(tmp_path):
    """Template directory with a README and a main source file."""
    templates = tmp_path / "templates"
    (templates / "src").mkdir(parents=True)
    (templates / "README.md").write_text("# {{PROJECT-NAME}}")
    (templates / "gitignore").write_text("node_modules/\n")
    (templates / "src" / "main.js").write_text(
        "// (c) {{CURRENT-YEAR}} {{ORGANISATION-NAME}}\nexport const {{projectName}} = 1;\n"
    )
    return templates


@pytest.fixture
def make_config(template_dir):
    """Factory for Configuration objects pointing at ``template_dir``."""

    def _make(**overrides):
        values = dict(
            templates_dir=template_dir,
            main_name="demo",
            main_source_file_template="src/main.js",
            main_source_file_name="src/demo.js",
            preferred_package_manager=PackageManagerType.NPM,
            git_organization="acme",
            organization_name="Acme Inc",
            organization_email="dev@acme.test",
            files=("README.md",),
            packages=("left-pad",),
            git_branch="main",
            git_commit_message="Initial commit",
        )
        if "rename_files" in overrides:
            overrides["rename_files"] = MappingProxyType(dict(overrides["rename_files"]))
        if "git_submodules" in overrides:
            overrides["git_submodules"] = tuple(
                item if isinstance(item, SubmoduleDescriptor) else SubmoduleDescriptor(**item)
                for item in overrides["git_submodules"]
            )
        values.update(overrides)
        return Configuration(**values)

    return _make
