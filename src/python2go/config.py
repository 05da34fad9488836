from pathlib import Path

from platformdirs import user_config_dir
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_DIR_NAME = "python2go"
DEFAULT_PYTHON_VERSION = "3.8.3"


def get_config_path() -> Path:
    """Get the JSON config file path."""
    return Path(user_config_dir(CONFIG_DIR_NAME)) / "config.json"


class Python2GoSettings(BaseSettings):
    """Configuration settings for python2go.

    Priority (highest first): init arguments, ``PYTHON2GO_*`` environment
    variables, ``.env``, then the JSON file in the user config directory.
    """

    python_version: str = DEFAULT_PYTHON_VERSION

    # Gist (not the raw url) holding a JSON list of {"package": ..., "version": ...}
    gist_pip_url: str | None = None

    # Overrides the interpreter the platform would install for python_version
    interpreter: str | None = None

    debug: bool = False
    log_file: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix="PYTHON2GO_",
        env_file=".env",
        extra="ignore",
        json_file=get_config_path(),
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
            env_settings,
            dotenv_settings,
            file_secret_settings,
            JsonConfigSettingsSource(settings_cls),
        )


SETTINGS = Python2GoSettings()
