"""Application state and configuration."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from teststability.core.base import BaseConfig
from teststability.core.log import Logger
from teststability.core.yaml_settings import (
    CONFIG_FILE_NAME,
    YamlWithIncludesSettingsSource,
)

APP_NAME = "teststability"

# Modules reachable from {module.attr} templates in string settings,
# e.g. {platformdirs.user_data_dir}.
TEMPLATE_NAMESPACE = {
    'platformdirs': platformdirs,
    'Path': Path,
}


class HistoryConfig(BaseConfig):
    """Where histories live and how they are decoded."""

    capacity: int = Field(
        default=30,
        ge=0,
        description="Number of builds kept per test case",
    )
    store_file: Path = Field(
        default_factory=lambda: (
            Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))
            / "history.yaml"
        ),
        description=(
            "YAML file holding all histories "
            "(supports {platformdirs.*} templates)"
        ),
    )
    strict: bool = Field(
        default=False,
        description=(
            "Reject stored histories whose head, tail or size do not "
            "fit their slots, instead of loading them as-is"
        ),
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger | None = Field(
        default=None,
        description="Logger configuration",
    )
    history: HistoryConfig = Field(
        default_factory=HistoryConfig,
        description="History storage settings",
    )
    log_root: Path = Field(
        default_factory=lambda: (
            Path(platformdirs.user_state_dir(APP_NAME, appauthor=False))
        ),
        description="Root directory for log files",
    )
    run_name: str = Field(
        default="cli",
        description="Name used for the log service and log directory",
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> Config:
        """Install the global logger once configuration has loaded."""
        from teststability.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        setup_logger(
            log_root=self.log_root,
            run_name=self.run_name,
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self

    def close(self):
        """Close the global logger and all other closeable children."""
        from teststability.core.log import logger
        logger.close()
        super().close()


class State(BaseSettings):
    """Everything a command needs: the loaded configuration.

    Loaded from, highest priority first: constructor arguments, YAML
    files, ``.env``, then ``TESTSTABILITY_`` environment variables
    (nested with ``__``, e.g. ``TESTSTABILITY_CONFIG__HISTORY__CAPACITY``).
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to merge over the defaults. "
            "Use --include on the CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file=CONFIG_FILE_NAME,
        env_file=".env",
        env_prefix="TESTSTABILITY_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> State:
        """Expand {module.attr} and {config.path} templates in place."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                obj[i] = self._substitute_value(item)

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        if isinstance(value, Path):
            substituted = self._substitute_string(str(value))
            return value if substituted == str(value) else Path(substituted)
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {a.b.c} templates; unknown references stay as-is.

        Examples:
            "{platformdirs.user_data_dir}/history.yaml"
            → "~/.local/share/teststability/history.yaml"
            "{config.log_root}/runs" → "/var/log/teststability/runs"
        """
        def replace(match):
            parts = match.group(1).split(".")
            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj(APP_NAME, appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z_]+(?:\.[a-z_]+)+)\}', replace, value)


__all__ = ["Config", "HistoryConfig", "State"]
