"""User-level git configuration."""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass

from wyog.errors import GitError


def _new_parser() -> configparser.ConfigParser:
    return configparser.ConfigParser(
        interpolation=None, strict=False, allow_no_value=True
    )


@dataclass
class Config:
    """Parsed configuration values."""

    parser: configparser.ConfigParser

    def user(self) -> str:
        """Return "name <email>" from the user section, or "" when incomplete."""
        if not self.parser.has_section("user"):
            return ""
        section = self.parser["user"]
        name = section.get("name")
        email = section.get("email")
        if name is None or email is None:
            return ""
        return f"{name} <{email}>"


def read_config() -> Config:
    """Load the XDG git config, overlaid by ~/.gitconfig when it exists."""
    config_home = os.environ.get("XDG_CONFIG_HOME", "~/.config")
    primary = os.path.expandvars(
        os.path.expanduser(os.path.join(config_home, "git", "config"))
    )
    paths = [primary]
    home_config = os.path.expanduser("~/.gitconfig")
    if os.path.exists(home_config):
        paths.append(home_config)

    parser = _new_parser()
    try:
        for path in paths:
            with open(path, encoding="utf-8") as fh:
                parser.read_file(fh, source=path)
    except (OSError, configparser.Error) as exc:
        raise GitError("cannot parse config files") from exc
    return Config(parser)