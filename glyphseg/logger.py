# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging setup for the command-line entry points."""

from __future__ import annotations

import logging
import os
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional, Union

import colorlog
from dotenv import load_dotenv

LOGGER_NAME = "glyphseg"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COLOR_LOG_FORMAT = "%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COLOR_SCHEME = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

logger = logging.getLogger(LOGGER_NAME)


def get_env_variable(var_name: str, default: Union[str, int, float, bool, None] = None) -> Union[str, int, float, bool]:
    """Return an environment variable converted to the type of ``default``."""

    value = os.getenv(var_name)
    if value is None:
        if default is None:
            raise ValueError(f"Environment variable {var_name} is not set")
        return default

    if isinstance(default, bool):
        return value.strip().lower() in {"true", "1", "yes", "on"}
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def setup_logger(log_dir: Optional[Union[str, Path]] = None, *, debug: Optional[bool] = None) -> logging.Logger:
    """Attach a coloured console handler (and optional file handler) to the package logger."""

    load_dotenv()
    if debug is None:
        debug = bool(get_env_variable("GLYPHSEG_DEBUG", False))

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    package_logger.handlers = []

    console_handler = colorlog.StreamHandler()
    console_handler.setFormatter(
        colorlog.ColoredFormatter(COLOR_LOG_FORMAT, log_colors=COLOR_SCHEME, reset=True, style="%")
    )
    package_logger.addHandler(console_handler)

    if log_dir is not None:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / "glyphseg.log", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(file_handler)

    return package_logger


def log_execution_time(func: Callable[..., Any]) -> Callable[..., Any]:
    """Log how long ``func`` took at DEBUG level."""

    stage_logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        stage_logger.debug("%s executed in %.3f seconds", func.__name__, time.perf_counter() - start_time)
        return result

    return wrapper
