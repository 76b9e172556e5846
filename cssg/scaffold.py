"""Project scaffolding for cssg.

Starter projects ship inside the package under ``starters/<name>/``. Creating
a project copies one of those trees, replacing the ``__PROJECT_NAME__``
placeholder and renaming ``gitignore`` to ``.gitignore`` (dotfiles do not
survive packaging reliably).

Key functions:
- create_project: Scaffold a new project directory from a starter.
- init_project: Add the minimal starter to an existing directory.
- list_templates: Names of the bundled starters.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import click

from .utils import titleize

STARTERS_DIR = Path(__file__).parent / "starters"
PLACEHOLDER = "__PROJECT_NAME__"
PROJECT_DIRS = ("src/pages", "src/layouts", "src/data", "src/assets")
_RENAMES = {"gitignore": ".gitignore"}


class ScaffoldError(Exception):
    """Raised when a project cannot be scaffolded."""


def list_templates() -> list[str]:
    """Return the names of the bundled starter templates."""
    return sorted(p.name for p in STARTERS_DIR.iterdir() if p.is_dir())


def _starter_dir(template: str) -> Path:
    if template not in list_templates():
        raise ScaffoldError(
            f"Template '{template}' not found. Available templates: {', '.join(list_templates())}"
        )
    return STARTERS_DIR / template


def _iter_starter(template: str, target: Path):
    """Yield (source, destination) pairs for every file of a starter."""
    source_root = _starter_dir(template)
    for src_path in sorted(source_root.rglob("*")):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(source_root)
        rel_path = rel_path.with_name(_RENAMES.get(rel_path.name, rel_path.name))
        yield src_path, target / rel_path


def _write_from_starter(src_path: Path, dest_path: Path, project_name: str) -> None:
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        text = src_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        shutil.copy2(src_path, dest_path)
        return
    dest_path.write_text(text.replace(PLACEHOLDER, project_name), encoding="utf-8")


def _make_project_dirs(root: Path) -> None:
    for rel in PROJECT_DIRS:
        (root / rel).mkdir(parents=True, exist_ok=True)


def create_project(target: Path, template: str = "basic", force: bool = False) -> list[Path]:
    """Create a new project directory from a starter.

    Args:
        target: Directory to create the project in.
        template: Name of the bundled starter.
        force: Write into a non-empty directory, overwriting clashing files.

    Returns:
        Paths of the files written.

    Raises:
        ScaffoldError: If the target is non-empty without ``force`` or the
            template does not exist.
    """
    target = Path(target).resolve()
    _starter_dir(template)
    if target.exists() and any(target.iterdir()) and not force:
        raise ScaffoldError(
            f"Directory '{target}' already exists and is not empty. "
            "Use --force to overwrite or choose a different name."
        )
    project_name = titleize(target.name)
    _make_project_dirs(target)
    written = []
    for src_path, dest_path in _iter_starter(template, target):
        _write_from_starter(src_path, dest_path, project_name)
        written.append(dest_path)
    _try_git_init(target)
    return written


def init_project(root: Path) -> list[tuple[Path, bool]]:
    """Initialize a project in an existing directory.

    Existing files are left untouched.

    Args:
        root: Directory to initialize.

    Returns:
        (path, created) pairs for every starter file; ``created`` is False
        when the file already existed and was skipped.
    """
    root = Path(root).resolve()
    project_name = titleize(root.name)
    _make_project_dirs(root)
    results = []
    for src_path, dest_path in _iter_starter("minimal", root):
        if dest_path.exists():
            results.append((dest_path, False))
            continue
        _write_from_starter(src_path, dest_path, project_name)
        results.append((dest_path, True))
    return results


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("CSSG_SKIP_GIT_INIT") == "1":
        return
    if (root / ".git").exists():
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run(
            [git_bin, "init"],
            cwd=root,
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        # Non-fatal: user can run git init manually
        click.echo(f"Skipping git init: {exc}", err=True)
