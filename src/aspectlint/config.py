"""Project configuration read from ``aspectlint.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from aspectlint.versions import LATEST_VERSION, UnsupportedVersionError, parse_version

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "aspectlint.yml"
VALID_FORMATS: frozenset[str] = frozenset({"rich", "json", "porcelain"})


@dataclass(frozen=True)
class LintConfig:
    """Settings for a lint run; every field has a usable default."""

    meta_model_version: str = LATEST_VERSION.to_version_string()
    rules_path: Path | None = None
    messages_path: Path | None = None
    fmt: str | None = None
    strict: bool = False


def load_config(project_root: Path) -> LintConfig:
    """Load ``aspectlint.yml`` from *project_root*.

    Falls back to defaults for missing keys or a missing file.  An
    unreadable file or invalid values are logged and ignored rather than
    failing the run.  Relative ``rules``/``messages`` paths are resolved
    against *project_root*.
    """
    config_path = project_root / CONFIG_FILENAME
    if not config_path.is_file():
        return LintConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", config_path)
        return LintConfig()

    if not isinstance(data, dict):
        return LintConfig()

    defaults = LintConfig()

    version = defaults.meta_model_version
    version_raw = data.get("meta_model_version")
    if version_raw is not None:
        try:
            version = parse_version(str(version_raw)).to_version_string()
        except UnsupportedVersionError as exc:
            logger.warning("Ignoring meta_model_version in %s: %s", config_path, exc)

    fmt_raw = data.get("format")
    fmt: str | None = None
    if fmt_raw is not None:
        if str(fmt_raw) in VALID_FORMATS:
            fmt = str(fmt_raw)
        else:
            logger.warning("Ignoring unknown format '%s' in %s", fmt_raw, config_path)

    strict_raw = data.get("strict", False)
    strict = False
    if isinstance(strict_raw, bool):
        strict = strict_raw
    else:
        logger.warning("Ignoring non-boolean strict value '%s' in %s", strict_raw, config_path)

    def _path(key: str) -> Path | None:
        raw = data.get(key)
        if raw is None:
            return None
        path = Path(str(raw))
        return path if path.is_absolute() else project_root / path

    return LintConfig(
        meta_model_version=version,
        rules_path=_path("rules"),
        messages_path=_path("messages"),
        fmt=fmt,
        strict=strict,
    )
