"""A small implementation of a subset of git: objects, index, refs, ignore rules and commands."""

__version__ = "0.0.1"