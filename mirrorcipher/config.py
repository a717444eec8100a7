"""
Configuration

Module-level defaults and the environment variables that override them.
"""

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

# Default geometry: 4 * 64 = 256 perimeter slots, one per byte value
DEFAULT_GRID_SIZE = 64
DEFAULT_FIELD_COUNT = 8

# Perimeter values are distinct bytes
MAX_PERIMETER_SLOTS = 256

ENV_GRID_SIZE = 'MIRRORCIPHER_GRID_SIZE'
ENV_FIELD_COUNT = 'MIRRORCIPHER_FIELD_COUNT'
ENV_KEY_FILE = 'MIRRORCIPHER_KEY_FILE'
ENV_PASSPHRASE = 'MIRRORCIPHER_PASSPHRASE'
ENV_LOG_LEVEL = 'MIRRORCIPHER_LOG_LEVEL'


def check_geometry(grid_size: int, field_count: int) -> None:
    """
    Check that a grid size and field count describe a usable field bank.

    Args:
        grid_size: Side length N of each mirror grid
        field_count: Number K of fields in the bank

    Raises:
        ValueError: If either value is out of range
    """
    if grid_size < 1:
        raise ValueError(f"Grid size must be at least 1, got {grid_size}")
    if 4 * grid_size > MAX_PERIMETER_SLOTS:
        raise ValueError(
            f"Grid size must be at most {MAX_PERIMETER_SLOTS // 4}, got {grid_size}"
        )
    if field_count < 1:
        raise ValueError(f"Field count must be at least 1, got {field_count}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class CipherSettings:
    """Settings collected from the environment."""
    grid_size: int = DEFAULT_GRID_SIZE
    field_count: int = DEFAULT_FIELD_COUNT
    key_file: Optional[str] = None
    passphrase: Optional[str] = None
    log_level: str = 'WARNING'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'CipherSettings':
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``

        Returns:
            The collected settings

        Raises:
            ValueError: If a numeric variable is malformed or out of range
        """
        if env is None:
            env = os.environ

        settings = cls(
            grid_size=_env_int(env, ENV_GRID_SIZE, DEFAULT_GRID_SIZE),
            field_count=_env_int(env, ENV_FIELD_COUNT, DEFAULT_FIELD_COUNT),
            key_file=env.get(ENV_KEY_FILE) or None,
            passphrase=env.get(ENV_PASSPHRASE) or None,
            log_level=(env.get(ENV_LOG_LEVEL) or 'WARNING').upper(),
        )
        check_geometry(settings.grid_size, settings.field_count)

        if not isinstance(logging.getLevelName(settings.log_level), int):
            raise ValueError(f"{ENV_LOG_LEVEL} is not a logging level: {settings.log_level!r}")

        return settings
