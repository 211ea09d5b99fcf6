"""Folio content collector.

This package scans a tree of Markdown files with YAML front matter, validates
their metadata, and assembles an immutable site model (pages, posts, tags and
menus) ready to hand to a templating layer.

The pipeline is linear: parse -> collect -> assemble. The CLI module provides
commands for building the model, listing tags, and creating new content files.
"""

import logging

__all__ = ["__version__"]
__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
