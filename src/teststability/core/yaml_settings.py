"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from teststability.core.log import logger

CONFIG_FILE_NAME = "teststability.yaml"


def cli_includes(argv: list[str]) -> list[str]:
    """Collect ``--include FILE`` values from a command line."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
    return includes


def deep_merge(base: dict, override: dict) -> dict:
    """Merge override into a copy of base; nested dicts merge too."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Alias so methods whose ``deep_merge`` parameter shadows the function
# can still reach it.
_deep_merge = deep_merge


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source that layers several files.

    Files are deep-merged in this order, later files winning:

    1. package defaults (``defaults/default.yaml``)
    2. user config in the platform config directory
    3. ``teststability.yaml`` in the current directory
    4. files named by ``--include`` on the command line

    A file may pull in others with a top-level ``include:`` key; its
    own values override what it includes.
    """

    def __init__(self, settings_cls: type[BaseSettings], yaml_file=None):
        includes = cli_includes(sys.argv)
        base = yaml_file or settings_cls.model_config.get("yaml_file")

        if base and includes:
            base = [base] if isinstance(base, (str, os.PathLike)) else list(base)
            yaml_file = base + includes
        else:
            yaml_file = base or includes or None

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = False):  # noqa: ARG002
        # Files are always deep-merged.
        candidates = [
            Path(__file__).parent.parent / "defaults" / "default.yaml",
            Path(user_config_dir("teststability", appauthor=False))
            / CONFIG_FILE_NAME,
        ]

        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            candidates.extend(Path(f).expanduser() for f in files)

        result = {}
        seen = set()
        for path in candidates:
            resolved = path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)

            if not path.is_file():
                logger.debug(
                    "Configuration file not found (skipping)", file=str(path)
                )
                continue

            logger.debug("Loading configuration", file=str(path))
            result = _deep_merge(result, self._load_file_recursive(path, set()))

        return result

    def _load_file_recursive(self, filepath: Path, visited: set[Path]) -> dict:
        """Load one file with its ``include:`` files merged underneath.

        Raises:
            ValueError: If files include each other in a cycle
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        merged = {}
        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            logger.debug(
                "Including configuration",
                file=str(inc_path),
                included_from=str(filepath),
            )
            merged = deep_merge(
                merged, self._load_file_recursive(inc_path, visited.copy())
            )

        return deep_merge(merged, data)
