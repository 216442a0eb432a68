"""Configuration management for Slit.

This module provides a clean interface for reading and writing
both repository-local and global configuration files.
"""

import os
import configparser
from pathlib import Path
from typing import Optional

from slit.core.objects import Identity
from slit.errors import CommandError, GeneralError


class Config:
    """
    Manages Slit configuration files.

    Configuration is stored in INI format, similar to Git:
    - Global config: ~/.slitconfig
    - Repository config: .slit/config

    Repository config takes precedence over global config.
    Environment variables take highest precedence.
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.slitconfig'

    def __init__(self, repo_config_path: Optional[Path] = None):
        """
        Initialize Config manager.

        Args:
            repo_config_path: Path to repository config file, if in a repo
        """
        self.repo_config_path = repo_config_path

    def _load(self, path: Optional[Path]) -> configparser.ConfigParser:
        parser = configparser.ConfigParser()
        if path is not None and path.exists():
            parser.read(path)
        return parser

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Priority order (highest to lowest):
        1. Environment variables (SLIT_<SECTION>_<KEY>)
        2. Repository config
        3. Global config
        4. Fallback value

        Args:
            section: Config section (e.g., 'user', 'core')
            key: Config key (e.g., 'name', 'email')
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        env_value = os.environ.get(f"SLIT_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value

        for path in (self.repo_config_path, self.GLOBAL_CONFIG_PATH):
            parser = self._load(path)
            if parser.has_option(section, key):
                return parser.get(section, key)

        return fallback

    def get_int(self, section: str, key: str, fallback: int) -> int:
        """
        Get an integer configuration value.

        Raises:
            GeneralError: If the stored value is not an integer
        """
        value = self.get(section, key)
        if value is None:
            return fallback
        try:
            return int(value)
        except ValueError:
            raise GeneralError(f"bad integer value `{value}` for {section}.{key}")

    def set(self, section: str, key: str, value: str, global_config: bool = False) -> None:
        """
        Set a configuration value.

        Args:
            section: Config section
            key: Config key
            value: Value to set
            global_config: If True, write to global config; otherwise repo config
        """
        config_path = self.GLOBAL_CONFIG_PATH if global_config else self.repo_config_path
        if config_path is None:
            raise GeneralError("no repository config available (use --global)")

        parser = self._load(config_path)
        if not parser.has_section(section):
            parser.add_section(section)
        parser.set(section, key, value)

        with open(config_path, 'w') as f:
            parser.write(f)

    def get_user_identity(self) -> Identity:
        """
        Identity used as the default author and committer.

        SLIT_AUTHOR_NAME / SLIT_AUTHOR_EMAIL win over user.name / user.email.

        Raises:
            CommandError: If name or email is not configured
        """
        name = os.environ.get('SLIT_AUTHOR_NAME') or self.get('user', 'name')
        email = os.environ.get('SLIT_AUTHOR_EMAIL') or self.get('user', 'email')
        if not name or not email:
            raise CommandError(
                "author identity unknown; run `slit config set user.name \"Your Name\"` "
                "and `slit config set user.email you@example.com`"
            )
        return Identity(name, email)

    def get_editor(self) -> str:
        """
        Editor command for interactive message editing.

        Resolution order: SLIT_EDITOR, core.editor, VISUAL, EDITOR, vi.
        """
        return (
            os.environ.get('SLIT_EDITOR')
            or self.get('core', 'editor')
            or os.environ.get('VISUAL')
            or os.environ.get('EDITOR')
            or 'vi'
        )


def get_config(repo=None) -> Config:
    """
    Get a Config instance.

    Args:
        repo: Repository instance, or None for global-only config

    Returns:
        Config instance
    """
    if repo:
        return Config(repo.config_file)
    return Config()
