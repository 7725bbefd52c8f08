"""
Static catalogs and constants.

Pure data, loaded at import time and shared by every service.
"""

from cclocal.core.data.tools import TOOL_SPECS, DownloadSpec, ToolSpec, get_tool_spec

__all__ = [
    "DownloadSpec",
    "TOOL_SPECS",
    "ToolSpec",
    "get_tool_spec",
]
