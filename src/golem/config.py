import tomllib
from dataclasses import dataclass
from pathlib import Path

from golem.artifacts.errors import ConfigError
from golem.artifacts.models import SyncSuffixes
from golem.artifacts.paths import (
    CONFIG_FILE_NAME,
    DEFAULT_BACKUP_SUFFIX,
    DEFAULT_PENDING_SUFFIX,
    MANIFEST_FILE_NAME,
    VERSION_MARKER_NAME,
)


@dataclass(frozen=True)
class InstallConfig:
    """In-memory representation of a distribution's `golem.toml`.

    Example golem.toml:
      [distribution]
      version = "4.5.0"
      # Top-level entries of the distribution to install (empty = all)
      components = ["bin", "lib", "templates", "hooks"]

      [sync]
      backup_suffix = ".pre-golem"
      pending_suffix = ".new"
      structured_suffixes = [".json"]
      manifest = "checksums.json"
      require_manifest = true
    """

    version: str | None
    components: list[str]
    suffixes: SyncSuffixes
    structured_suffixes: list[str]
    manifest_name: str
    require_manifest: bool


def default_install_config() -> InstallConfig:
    return InstallConfig(
        version=None,
        components=[],
        suffixes=SyncSuffixes(backup=DEFAULT_BACKUP_SUFFIX, pending=DEFAULT_PENDING_SUFFIX),
        structured_suffixes=[".json"],
        manifest_name=MANIFEST_FILE_NAME,
        require_manifest=True,
    )


def _get_str(table: dict, key: str, default: str, cfg_path: Path, prefix: str) -> str:
    value = table.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(cfg_path, f"{prefix}.{key}", "a non-empty string")
    return value


def _get_str_list(
    table: dict, key: str, default: list[str], cfg_path: Path, prefix: str
) -> list[str]:
    value = table.get(key, default)
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise ConfigError(cfg_path, f"{prefix}.{key}", "a list of strings")
    return list(value)


def _read_version_file(source_root: Path) -> str | None:
    version_path = source_root / VERSION_MARKER_NAME
    if not version_path.is_file():
        return None
    version = version_path.read_text(encoding="utf-8").strip()
    return version or None


def load_install_config(source_root: Path) -> InstallConfig:
    """Load golem.toml from a distribution root, falling back to defaults.

    The distribution version comes from [distribution].version, else from a
    `version` file at the distribution root.

    Raises:
        ConfigError: if a key is present with the wrong type
    """
    defaults = default_install_config()
    cfg_path = source_root / CONFIG_FILE_NAME
    data: dict = {}
    if cfg_path.exists():
        try:
            data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(cfg_path, "<document>", f"valid TOML ({e})") from e

    dist = data.get("distribution", {})
    if not isinstance(dist, dict):
        raise ConfigError(cfg_path, "distribution", "a table")
    sync = data.get("sync", {})
    if not isinstance(sync, dict):
        raise ConfigError(cfg_path, "sync", "a table")

    version = dist.get("version")
    if version is not None and not isinstance(version, str):
        raise ConfigError(cfg_path, "distribution.version", "a string")
    if version is None:
        version = _read_version_file(source_root)

    require_manifest = sync.get("require_manifest", defaults.require_manifest)
    if not isinstance(require_manifest, bool):
        raise ConfigError(cfg_path, "sync.require_manifest", "a boolean")

    return InstallConfig(
        version=version,
        components=_get_str_list(dist, "components", defaults.components, cfg_path, "distribution"),
        suffixes=SyncSuffixes(
            backup=_get_str(sync, "backup_suffix", defaults.suffixes.backup, cfg_path, "sync"),
            pending=_get_str(sync, "pending_suffix", defaults.suffixes.pending, cfg_path, "sync"),
        ),
        structured_suffixes=_get_str_list(
            sync, "structured_suffixes", defaults.structured_suffixes, cfg_path, "sync"
        ),
        manifest_name=_get_str(sync, "manifest", defaults.manifest_name, cfg_path, "sync"),
        require_manifest=require_manifest,
    )
