"""
Configuration for the worksheet engine.

Defines EngineSettings, a frozen dataclass carrying the validator policy switches,
the CLI's auto-migration switch and its log level.

Precedence
- environment (``WORKSHEET_*``) > TOML > defaults.
- TOML search when no explicit path is given:
  1) ./worksheet.toml (either an ``[engine]`` table or top-level keys)
  2) ./pyproject.toml under ``[tool.worksheet.engine]``

Import DAG discipline
- Depends only on stdlib and worksheet.io.errors.
- Does not import worksheet.compute, worksheet.formulation or the CLI.

Notes
- Unknown keys and unparseable values are ignored; the previous value stands.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .errors import IoConfigError

__all__ = ["EngineSettings", "LOG_LEVELS"]

LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

_BOOL_KEYS: tuple[str, ...] = (
    "reject_legacy_layouts",
    "require_sections",
    "allow_branch_sections",
    "auto_migrate",
)


def _bool(v: Any, fallback: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        lo = v.strip().lower()
        if lo in {"1", "true", "t", "yes", "y", "on"}:
            return True
        if lo in {"0", "false", "f", "no", "n", "off"}:
            return False
    return fallback


@dataclass(frozen=True)
class EngineSettings:
    """
    Runtime settings for validation, migration and the CLI.

    Attributes:
        reject_legacy_layouts (bool): Reject schemas still carrying a legacy
            formulation ``layout`` tag (they must be migrated first).
        require_sections (bool): Reject schemas with no sections. Off by default
            so that freshly created drafts validate.
        allow_branch_sections (bool): Accept decision-tree branch sections.
        auto_migrate (bool): CLI commands migrate legacy schemas before use.
        log_level (str): Level name handed to ``logging.basicConfig`` by the CLI.

    Examples:
        >>> EngineSettings(require_sections=True).require_sections
        True
    """

    reject_legacy_layouts: bool = True
    require_sections: bool = False
    allow_branch_sections: bool = True
    auto_migrate: bool = True
    log_level: str = "WARNING"

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: EngineSettings, cfg: dict[str, Any] | None) -> EngineSettings:
        """Apply a loose config mapping onto EngineSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base
        for key in _BOOL_KEYS:
            if key in cfg:
                s = replace(s, **{key: _bool(cfg[key], getattr(s, key))})

        if "log_level" in cfg and isinstance(cfg["log_level"], str):
            level = cfg["log_level"].strip().upper()
            if level in LOG_LEVELS:
                s = replace(s, log_level=level)

        return s

    @classmethod
    def from_env(
        cls, base: EngineSettings | None = None, prefix: str = "WORKSHEET_"
    ) -> EngineSettings:
        """
        Build EngineSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - WORKSHEET_REJECT_LEGACY_LAYOUTS (1/0/true/false/yes/no/on/off)
            - WORKSHEET_REQUIRE_SECTIONS
            - WORKSHEET_ALLOW_BRANCH_SECTIONS
            - WORKSHEET_AUTO_MIGRATE
            - WORKSHEET_LOG_LEVEL (DEBUG | INFO | WARNING | ERROR | CRITICAL)
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for key in (*_BOOL_KEYS, "log_level"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> EngineSettings:
        """
        Build EngineSettings from a TOML file.

        Search order when `path` is None:
            1) ./worksheet.toml (with either an [engine] table or direct keys)
            2) ./pyproject.toml under [tool.worksheet.engine]

        Returns defaults if no file is present.

        Raises:
            IoConfigError: If an explicit ``path`` does not exist, or a TOML file
                that was found cannot be parsed.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any]:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError) as exc:
                raise IoConfigError(f"cannot read config {str(p)!r}: {exc}") from exc

        cand: list[Path] = []
        if path is not None:
            explicit = Path(path)
            if not explicit.exists():
                raise IoConfigError(f"config file not found: {str(explicit)!r}")
            cand.append(explicit)
        else:
            cand.append(Path.cwd() / "worksheet.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                section = tool.get("worksheet", {}) if isinstance(tool, dict) else {}
                cfg = section.get("engine") if isinstance(section, dict) else None
            elif isinstance(data.get("engine"), dict):
                cfg = data["engine"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> EngineSettings:
        """
        Load EngineSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (worksheet.toml, pyproject.toml).

        Returns:
            EngineSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
