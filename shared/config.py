"""
revdeps Configuration Management
=================================

Centralized configuration for the revdeps toolkit using Python dataclasses
and TOML-based persistence.

Command-line options always take precedence over values loaded here; the
TOML file only supplies defaults for a site or a user.

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Config ===========================


@dataclass(frozen=False, slots=True)
class RevdepsConfig:
    """Configuration for the reverse-dependency scanner.

    Controls which directory is scanned and which directory entries are
    considered candidate object files.
    """

    executables_dir: str = "/"
    max_file_size: int = 268_435_456  # 256 MiB
    follow_symlinks: bool = True
    include_hidden: bool = True


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity and destinations."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class RevdepsSettings:
    """Master configuration aggregating tool-specific and global settings.

    Usage:
        >>> settings = RevdepsSettings.load()                # default path
        >>> settings = RevdepsSettings.load("custom.toml")   # custom path
        >>> settings.revdeps.executables_dir
        '/'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    revdeps: RevdepsConfig = field(default_factory=RevdepsConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> RevdepsSettings:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`RevdepsSettings` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            revdeps=cls._build_section(RevdepsConfig, raw.get("revdeps", {})),
        )

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are silently ignored so that
        forward-compatible config files do not break older code.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)
