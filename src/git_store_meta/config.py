"""Configuration loading and option resolution.

Options come from four places, highest precedence first: command-line
flags, the header of the existing snapshot, the optional
`.git_store_meta.yaml` file at the top of the working tree, and built-in
defaults. `update` always takes fields and configs from the snapshot.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import ALL_FIELDS, CONFIG_FILE, DEFAULT_FIELDS, DIRECTORY_CONFIG_SINCE, FIELD_FILE, FIELD_TYPE
from .core import StoreOptions
from .errors import ConfigError
from .snapshot import SnapshotInfo, has_directory_entry

logger = logging.getLogger(__name__)


class MetaConfig(BaseModel):
    """Repository defaults (stored in .git_store_meta.yaml)."""

    fields: Optional[List[str]] = None
    directory: Optional[bool] = None
    topdir: Optional[bool] = None
    exclude: List[str] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def split_fields(cls, value):
        if isinstance(value, str):
            return [value]
        return value


def load_meta_config(root: Path) -> MetaConfig:
    """Load defaults from .git_store_meta.yaml if present.

    Raises:
        ConfigError: If the file exists but is not valid YAML of the
            expected shape
    """
    cfg_path = root / CONFIG_FILE
    if not cfg_path.exists():
        return MetaConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read `{cfg_path}': {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"`{cfg_path}' must contain a mapping")

    try:
        return MetaConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration in `{cfg_path}':\n{e}")


def normalize_fields(raw: Iterable[str]) -> List[str]:
    """Normalize user-supplied fields.

    Items may be comma-separated. Unknown names are dropped, duplicates
    collapse, and "file" and "type" always come first.

    Examples:
        ["mtime,mode", "mtime"] -> ["file", "type", "mtime", "mode"]
        ["bogus"] -> ["file", "type"]
    """
    names = [FIELD_FILE, FIELD_TYPE]
    for item in raw:
        names.extend(part.strip() for part in item.split(","))
    return _filter_fields(names)


def _filter_fields(names: Iterable[str]) -> List[str]:
    result = []
    for name in names:
        if name in ALL_FIELDS and name not in result:
            result.append(name)
    return result


def resolve_options(
    action: str,
    info: SnapshotInfo,
    file_config: Optional[MetaConfig] = None,
    fields: Optional[List[str]] = None,
    directory: Optional[bool] = None,
    topdir: Optional[bool] = None,
    **flags: Union[bool, str],
) -> StoreOptions:
    """Build the effective options for an action.

    Args:
        action: "store", "update" or "apply"
        info: The existing snapshot, valid or not
        file_config: Repository defaults
        fields: Fields given on the command line (ignored for update)
        directory: --directory/--no-directory, or None when not given
        topdir: --topdir/--no-topdir, or None when not given
        **flags: dry_run, verbose, force and target, passed through

    Returns:
        StoreOptions for the run
    """
    file_config = file_config or MetaConfig()
    header = info.header

    if fields and action != "update":
        effective_fields = normalize_fields(fields)
    elif header is not None:
        effective_fields = _filter_fields(header.fields)
    elif file_config.fields:
        effective_fields = normalize_fields(file_config.fields)
    else:
        effective_fields = list(DEFAULT_FIELDS)

    cli = {"directory": directory, "topdir": topdir}
    configs = {}
    for key, cli_value in cli.items():
        if cli_value is not None and action != "update":
            configs[key] = cli_value
        elif header is not None:
            configs[key] = bool(header.flag(key))
        elif getattr(file_config, key) is not None:
            configs[key] = getattr(file_config, key)
        else:
            configs[key] = False

    # Snapshots from before 2.0.0 did not record --directory
    if (
        header is not None
        and directory is None
        and header.version_info < DIRECTORY_CONFIG_SINCE
        and has_directory_entry(info.path, header)
    ):
        logger.debug("Old snapshot has directory entries; enabling --directory")
        configs["directory"] = True

    return StoreOptions(
        fields=effective_fields,
        directory=configs["directory"],
        topdir=configs["topdir"],
        exclude=list(file_config.exclude),
        **{k: v for k, v in flags.items() if v is not None},
    )
