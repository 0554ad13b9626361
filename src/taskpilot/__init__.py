"""TaskPilot: natural-language commands and automation rules for a kanban core.

Two entry points share one task store:

- Commands: "create task: Fix login bug, high priority, due tomorrow" is
  parsed, its task and column references resolved against a board, and
  carried out with an audit trail.
- Automation: GitHub webhooks and task lifecycle events fire tenant-defined
  rules that create, move or update tasks.

Usage:
    # CLI
    $ taskpilot parse "move login bug to done"
    $ taskpilot serve

    # Python API
    from taskpilot.commands import parse_command

    cmd = parse_command("make the login bug urgent")
"""

try:
    from importlib.metadata import version as _get_version

    __version__ = _get_version("taskpilot")
except Exception:
    __version__ = "0.0.0-dev"

__all__ = ["__version__"]
