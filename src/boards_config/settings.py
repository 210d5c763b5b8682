from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    """Raised when required configuration is missing. Fatal at startup."""


def _marked_root(start: Path) -> Optional[Path]:
    for p in (start, *start.parents):
        if (p / "pyproject.toml").exists() or (p / ".git").exists():
            return p
    return None


@lru_cache(maxsize=1)
def repo_root() -> Path:
    """Project directory holding ``.env`` and ``artifacts/``.

    ``BOARDS_REPO_ROOT`` wins; otherwise the nearest ancestor with a
    ``pyproject.toml`` or ``.git``, looking from the working directory first
    and then from this package. Falls back to the working directory.
    """
    explicit = os.getenv("BOARDS_REPO_ROOT")
    if explicit:
        p = Path(explicit).expanduser().resolve()
        if not p.is_dir():
            raise ConfigError(f"BOARDS_REPO_ROOT does not exist or is not a directory: {p}")
        return p

    cwd = Path.cwd().resolve()
    return _marked_root(cwd) or _marked_root(Path(__file__).resolve().parent) or cwd


@lru_cache(maxsize=1)
def load_env_once() -> Optional[Path]:
    """Load the first env file found: ``BOARDS_ENV_FILE``, ``.env``, ``config/.env``.

    Variables already present in the process environment keep their values.
    """
    candidates = [repo_root() / ".env", repo_root() / "config" / ".env"]
    explicit = os.getenv("BOARDS_ENV_FILE")
    if explicit:
        candidates.insert(0, Path(explicit).expanduser())

    for p in candidates:
        if p.is_file():
            load_dotenv(dotenv_path=str(p.resolve()), override=False)
            return p.resolve()
    return None


def telemetry_dir() -> Path:
    p = os.getenv("BOARDS_TELEMETRY_DIR")
    if p:
        return Path(p).expanduser().resolve()
    return (repo_root() / "artifacts" / "telemetry").resolve()


def configure_logging() -> None:
    """Root logging from ``BOARDS_LOG_LEVEL`` / ``BOARDS_LOG_FORMAT``; left alone if a handler exists."""
    if logging.getLogger().handlers:
        return

    level = getattr(logging, os.getenv("BOARDS_LOG_LEVEL", "INFO").upper(), logging.INFO)
    fmt = os.getenv("BOARDS_LOG_FORMAT", "%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.basicConfig(level=level, format=fmt)


def init_runtime(*, configure_logs: bool = True, load_env: bool = True) -> None:
    """Process startup for the server and scripts: env file, then logging."""
    if load_env:
        load_env_once()
    if configure_logs:
        configure_logging()


def _require(env: Mapping[str, str], names: tuple[str, ...], service: str) -> dict[str, str]:
    values = {n: (env.get(n) or "").strip() for n in names}
    missing = [n for n, v in values.items() if not v]
    if missing:
        raise ConfigError(f"Missing required {service} environment variables: {', '.join(missing)}")
    return values


AZURE_DEVOPS_VARS = ("AZURE_DEVOPS_ORG_URL", "AZURE_DEVOPS_PAT", "AZURE_DEVOPS_PROJECT")
CONFLUENCE_VARS = ("CONFLUENCE_URL", "CONFLUENCE_USER", "CONFLUENCE_API_TOKEN")


@dataclass(frozen=True)
class AzureBoardsSettings:
    org_url: str
    pat: str
    project: str

    def __post_init__(self) -> None:
        _require(
            dict(zip(AZURE_DEVOPS_VARS, (self.org_url, self.pat, self.project))),
            AZURE_DEVOPS_VARS,
            "Azure DevOps",
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AzureBoardsSettings":
        values = _require(os.environ if env is None else env, AZURE_DEVOPS_VARS, "Azure DevOps")
        return cls(
            org_url=values["AZURE_DEVOPS_ORG_URL"],
            pat=values["AZURE_DEVOPS_PAT"],
            project=values["AZURE_DEVOPS_PROJECT"],
        )


@dataclass(frozen=True)
class ConfluenceSettings:
    base_url: str
    user: str
    api_token: str

    def __post_init__(self) -> None:
        _require(
            dict(zip(CONFLUENCE_VARS, (self.base_url, self.user, self.api_token))),
            CONFLUENCE_VARS,
            "Confluence",
        )
        # one trailing slash only
        if self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url[:-1])

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ConfluenceSettings":
        values = _require(os.environ if env is None else env, CONFLUENCE_VARS, "Confluence")
        return cls(
            base_url=values["CONFLUENCE_URL"],
            user=values["CONFLUENCE_USER"],
            api_token=values["CONFLUENCE_API_TOKEN"],
        )
