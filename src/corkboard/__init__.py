"""Corkboard: workspace-wide search over boards, cards and their content.

Usage:
    # HTTP API
    $ corkboard serve

    # One-off query from the terminal
    $ corkboard search "sprint" --user <user-id> --due overdue

    # Python API
    from corkboard.web.search.service import search_workspace_content

    response = await search_workspace_content(db, viewer_id, {"q": "sprint"})
"""

try:
    from importlib.metadata import version as _get_version

    __version__ = _get_version("corkboard")
except Exception:
    __version__ = "0.0.0-dev"

__all__ = ["__version__"]
