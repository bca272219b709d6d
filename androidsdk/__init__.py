# SPDX-License-Identifier: MIT
"""
androidsdk
==========

A thin, import-ready façade that exposes the Android SDK catalog (`SDK`),
its record types, the error hierarchy and SDK discovery at package level.

Usage
-----
>>> from androidsdk import SDK
>>> sdk = SDK("~/Android/Sdk")
>>> [p.id for p in sdk.platforms]
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Re-export public API
# ---------------------------------------------------------------------------
from .sdk import (
    SDK,
    Addon,
    BuildTools,
    InvalidArgument,
    InvalidRoot,
    InvalidSDK,
    MissingEmulator,
    MissingToolsDescriptor,
    MissingToolsDir,
    MissingVersion,
    Platform,
    Skipped,
    SystemImage,
    ToolsInfo,
    compare_versions,
    find_sdks,
    sort_key,
)

__all__: list[str] = [
    # catalog
    "SDK",
    "find_sdks",
    # records
    "ToolsInfo",
    "BuildTools",
    "SystemImage",
    "Platform",
    "Addon",
    "Skipped",
    # ordering
    "compare_versions",
    "sort_key",
    # exceptions
    "InvalidArgument",
    "InvalidSDK",
    "InvalidRoot",
    "MissingToolsDir",
    "MissingToolsDescriptor",
    "MissingVersion",
    "MissingEmulator",
]

# ---------------------------------------------------------------------------
# Version & logging niceties
# ---------------------------------------------------------------------------
from importlib.metadata import version, PackageNotFoundError

try:
    __version__: str = version(__name__)
except PackageNotFoundError:  # running from a checkout
    __version__ = "0.0.0.dev0"

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
