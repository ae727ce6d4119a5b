"""
devmirror configuration management (YAML + environment, schema-validated).
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import jsonschema

from devmirror.core.exceptions import ConfigError
from devmirror.core.file_io import read_yaml
from devmirror.core.patterns import FilterSpec
from devmirror.core.utils.merge import deep_merge
from devmirror.data import read_json as read_bundled_json
from devmirror.data import read_yaml as read_bundled_yaml

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILES = ("devmirror.yaml", "devmirror.yml", ".devmirror.yaml", ".devmirror.yml")
ENV_PREFIX = "DEVMIRROR_"

# Short environment aliases for the pattern lists.
_ENV_ALIASES = {"include": "include_patterns", "exclude": "exclude_patterns"}
_LIST_KEYS = frozenset({"include_patterns", "exclude_patterns"})
_ENV_KEYS = _LIST_KEYS | {"verbose", "build_convention"}

DESCRIPTOR_DIR_NAME = "devmirror"
DESCRIPTOR_FILE_NAME = "dev-server-config.json"


@dataclass(frozen=True)
class BuildConvention:
    """Where a backend build tool expects resources and working files."""

    name: str
    work_dir: str
    output_dir: str

    def output_path(self, base: Path) -> Path:
        return base / self.output_dir

    def descriptor_path(self, base: Path) -> Path:
        return base / self.work_dir / DESCRIPTOR_DIR_NAME / DESCRIPTOR_FILE_NAME


BUILD_CONVENTIONS: Dict[str, BuildConvention] = {
    "maven": BuildConvention(name="maven", work_dir="target", output_dir="target/classes"),
    "gradle": BuildConvention(name="gradle", work_dir="build", output_dir="build/resources/main"),
}
DEFAULT_BUILD_CONVENTION = "maven"


@dataclass(frozen=True)
class MirrorConfig:
    """Effective settings for one dev or build session."""

    include_patterns: tuple[str, ...]
    exclude_patterns: tuple[str, ...]
    verbose: bool = False
    build_convention: str = DEFAULT_BUILD_CONVENTION

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> MirrorConfig:
        return cls(
            include_patterns=tuple(raw["include_patterns"]),
            exclude_patterns=tuple(raw["exclude_patterns"]),
            verbose=bool(raw["verbose"]),
            build_convention=str(raw["build_convention"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "include_patterns": list(self.include_patterns),
            "exclude_patterns": list(self.exclude_patterns),
            "verbose": self.verbose,
            "build_convention": self.build_convention,
        }

    @property
    def filter_spec(self) -> FilterSpec:
        return FilterSpec(
            include_patterns=self.include_patterns,
            exclude_patterns=self.exclude_patterns,
        )

    @property
    def convention(self) -> BuildConvention:
        return BUILD_CONVENTIONS[self.build_convention]


class ConfigManager:
    """Load, merge, and validate devmirror configuration.

    Configuration sources (highest to lowest priority):
    1. Explicit overrides passed to ``load_config`` (CLI flags)
    2. Environment variables: DEVMIRROR_*
    3. Project config: <repo_root>/devmirror.yaml (first of PROJECT_CONFIG_FILES)
    4. Bundled defaults: devmirror.data/config/defaults.yaml
    """

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else Path.cwd()

    def project_config_path(self) -> Optional[Path]:
        for name in PROJECT_CONFIG_FILES:
            candidate = self.repo_root / name
            if candidate.is_file():
                return candidate
        return None

    def load_project_config(self) -> Dict[str, Any]:
        path = self.project_config_path()
        if path is None:
            return {}
        try:
            # Fail closed: configuration must never silently ignore invalid YAML.
            data = read_yaml(path, default={}, raise_on_error=True)
        except Exception as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping", context={"path": str(path)})
        return data

    def _coerce_env(self, key: str, value: str) -> Any:
        s = value.strip()
        if key in _LIST_KEYS:
            if s.startswith("["):
                try:
                    return json.loads(s)
                except ValueError as exc:
                    raise ConfigError(f"{ENV_PREFIX}{key.upper()} is not a JSON list: {exc}") from exc
            return [part.strip() for part in s.split(",") if part.strip()]
        if key == "build_convention":
            return s.lower()
        low = s.lower()
        if low in {"true", "1", "yes", "on"}:
            return True
        if low in {"false", "0", "no", "off"}:
            return False
        return s

    def env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if environ is None else environ
        out: Dict[str, Any] = {}
        for name in sorted(env.keys()):
            if not name.startswith(ENV_PREFIX):
                continue
            key = name[len(ENV_PREFIX):].lower()
            key = _ENV_ALIASES.get(key, key)
            if key not in _ENV_KEYS:
                logger.debug("Ignoring unrelated environment variable %s", name)
                continue
            out[key] = self._coerce_env(key, env[name])
        return out

    def validate(self, cfg: Dict[str, Any]) -> None:
        schema = read_bundled_json("schemas", "config.schema.json")
        try:
            jsonschema.validate(instance=cfg, schema=schema)
        except jsonschema.ValidationError as exc:
            where = ".".join(str(p) for p in exc.absolute_path) or "<root>"
            raise ConfigError(
                f"Invalid configuration at {where}: {exc.message}",
                context={"path": where},
            ) from exc

    def load_config(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        validate: bool = True,
    ) -> Dict[str, Any]:
        cfg = deep_merge({}, read_bundled_yaml("config", "defaults.yaml"))
        cfg = deep_merge(cfg, self.load_project_config())
        cfg = deep_merge(cfg, self.env_overrides(environ))
        explicit = {k: v for k, v in (overrides or {}).items() if v is not None}
        cfg = deep_merge(cfg, explicit)
        if validate:
            self.validate(cfg)
        return cfg

    def load(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> MirrorConfig:
        return MirrorConfig.from_dict(self.load_config(overrides, environ=environ))


__all__ = [
    "BUILD_CONVENTIONS",
    "DEFAULT_BUILD_CONVENTION",
    "BuildConvention",
    "ConfigManager",
    "MirrorConfig",
]
