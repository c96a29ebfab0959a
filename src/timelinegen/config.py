"""
Editor configuration, optionally read from a YAML file.

Lookup order: an explicit path, then ``$TIMELINEGEN_CONFIG``, then
``~/.config/timelinegen/config.yml``. A missing file means defaults.
"""
import os
from pathlib import Path
from typing import Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .logs import get_logger
from .models import DEFAULT_WEEKS, MAX_WEEKS, MIN_WEEKS
from .recovery import CorruptionError, FileOperationError
from .sizing import LEFT_COLUMN_PX
from .version import APP_NAME, FORMAT_VERSION

log = get_logger("config")

CONFIG_ENV = "TIMELINEGEN_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "timelinegen" / "config.yml"

class EditorConfig(BaseModel):
    app_name: str = Field(default=APP_NAME, description="Name written into exported files")
    format_version: int = Field(default=FORMAT_VERSION, description="Envelope version written into exported files")
    default_weeks: int = Field(default=DEFAULT_WEEKS, ge=MIN_WEEKS, le=MAX_WEEKS, description="Week count of new timelines")
    left_column_px: int = Field(default=LEFT_COLUMN_PX, ge=0, description="Width of the row label column")
    default_bar_range: Tuple[float, float] = Field(default=(2, 6), description="Start and end offered for a new bar")
    default_discovery_range: Tuple[float, float] = Field(default=(1, 2), description="Start and end offered for a new discovery range")
    first_phase_label: str = Field(default="Phase-1", min_length=1, description="Label suggested for the first phase")

def config_path(path: Union[Path, str, None] = None) -> Path:
    if path:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV, '')
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH

def load_config(path: Union[Path, str, None] = None) -> EditorConfig:
    """
    Load the editor configuration.

    Raises:
        CorruptionError: The file is not valid YAML or holds invalid values.
        FileOperationError: The file exists but cannot be read.
    """
    file_path = config_path(path)
    if not file_path.exists():
        log.debug(f"No config file at {file_path}, using defaults")
        return EditorConfig()

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise CorruptionError(f"YAML syntax error in {file_path}: {e}") from e
    except (IOError, OSError) as e:
        raise FileOperationError(f"Failed to read config {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise CorruptionError(f"Config {file_path} must contain a mapping")

    try:
        config = EditorConfig.model_validate(data)
    except ValidationError as e:
        raise CorruptionError(f"Invalid config in {file_path}: {e}") from e

    log.info(f"Loaded config from {file_path}")
    return config
