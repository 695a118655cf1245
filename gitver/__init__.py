"""
gitver — Semantic versions derived from Git history.

Resolves the current commit, branch identity, and effective branching-model
configuration for a repository so a build can compute a reproducible
version without manual bookkeeping.
"""

from pathlib import Path
import tomllib
from importlib.metadata import version, PackageNotFoundError

def _resolve_version() -> str:
    """Resolve gitver's own version.

    Priority:
    1) Local source checkout version from pyproject.toml (if present)
    2) Installed package metadata (gitver)
    3) Safe fallback
    """
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            data = {}
        ver = data.get("project", {}).get("version")
        if isinstance(ver, str) and ver.strip():
            return ver.strip()

    try:
        return version("gitver")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _resolve_version()
