"""noxfile.py - Nox sessions for Prompt Version Manager.

Updates:
  v0.5.0 - 2026-10-19 - Scope sessions to the version manager packages; drop alias sessions.
  v0.4.0 - 2026-10-06 - Import nox directly and lint the cli package.
  v0.3.0 - 2025-12-12 - Align sessions with Ruff/Pyright/Pytest quality gates in `.venv`.
  v0.2.2 - 2025-11-11 - Switch type checker session from mypy to pyright.
  v0.2.0 - 2025-10-30 - Switch sessions to host interpreter and add tool detection
  v0.1.0 - 2025-10-30 - Initial scaffold of fmt/lint/tests/type-check sessions

Install the project with `pip install -e .[dev]` inside `.venv` before running these sessions.
Sessions:
- format: format code with ruff
- lint: run ruff lint checks
- typecheck: run pyright over the packages listed in pyproject.toml
- test: run pytest with coverage of every source package
- all: run the full quality gate suite
"""

from __future__ import annotations

import sys
from pathlib import Path

import nox

SOURCE_PACKAGES: tuple[str, ...] = ("cli", "config", "core", "models")
CODE_LOCATIONS: tuple[str, ...] = ("main.py", *SOURCE_PACKAGES, "tests", "noxfile.py")
COVERAGE_THRESHOLD = 80


def _venv_executable(command: str) -> Path:
    venv_dir = Path(".venv")
    if sys.platform == "win32":
        return venv_dir / "Scripts" / f"{command}.exe"
    return venv_dir / "bin" / command


def _require_venv_tool(session: nox.Session, command: str) -> str:
    """Return the `.venv` tool path, failing with guidance when missing."""
    candidate = _venv_executable(command)
    if not candidate.exists():
        session.error(
            f"Missing {candidate}. Run "
            "`python -m venv .venv && . .venv/bin/activate && pip install -e .[dev]`."
        )
    return str(candidate)


def _run_pytest(session: nox.Session) -> None:
    pytest = _require_venv_tool(session, "pytest")
    coverage = [f"--cov={package}" for package in SOURCE_PACKAGES]
    session.run(
        pytest,
        "-n",
        "auto",
        *coverage,
        "--cov=main",
        "--cov-report=term-missing",
        f"--cov-fail-under={COVERAGE_THRESHOLD}",
        *session.posargs,
        external=True,
    )


@nox.session(venv_backend="none")
def format(session: nox.Session) -> None:
    """Format code using ruff.

    Usage: `nox -s format`
    """
    ruff = _require_venv_tool(session, "ruff")
    session.run(ruff, "format", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def lint(session: nox.Session) -> None:
    """Lint code using ruff."""
    ruff = _require_venv_tool(session, "ruff")
    session.run(ruff, "check", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def typecheck(session: nox.Session) -> None:
    """Run pyright with the configuration from pyproject.toml."""
    pyright = _require_venv_tool(session, "pyright")
    session.run(pyright, external=True)


@nox.session(venv_backend="none")
def test(session: nox.Session) -> None:
    """Run pytest with coverage; extra arguments go to pytest.

    Usage: `nox -s test -- -k remote`
    """
    _run_pytest(session)


@nox.session(venv_backend="none")
def all(session: nox.Session) -> None:
    """Run format check, lint, pyright, and tests in sequence."""
    ruff = _require_venv_tool(session, "ruff")
    pyright = _require_venv_tool(session, "pyright")
    session.run(ruff, "format", "--check", *CODE_LOCATIONS, external=True)
    session.run(ruff, "check", *CODE_LOCATIONS, external=True)
    session.run(pyright, external=True)
    _run_pytest(session)
