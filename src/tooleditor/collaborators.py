"""
External collaborators of the tool editor.

The editor never stores tools or decides folder ownership itself; it talks to
these narrow async interfaces instead. In-process implementations are provided
for the bundled app and for tests.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

from tooleditor.errors import OwnershipDeniedError
from tooleditor.tool_types import Tool

logger = logging.getLogger(__name__)


# =============================================================================
# Interfaces
# =============================================================================


@dataclass(frozen=True)
class OwnershipResult:
    """Outcome of a folder ownership check."""
    valid: bool
    error: str | None = None


class OwnershipChecker(Protocol):
    """Verifies that the current user may reference a set of folders."""

    async def check_ownership(self, folder_ids: list[str]) -> OwnershipResult: ...


class ToolPersistence(Protocol):
    """Stores a validated tool. Raises with a human-readable message on failure."""

    async def save(self, tool: Tool) -> None: ...


# Same shape as textual.app.App.notify
Notifier = Callable[..., None]

_SEVERITY_LEVELS = {
    "information": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def log_notifier(message: str, *, severity: str = "information", **_: Any) -> None:
    """Notifier used when no UI is attached: notifications go to the log."""
    logger.log(_SEVERITY_LEVELS.get(severity, logging.INFO), message)


async def check_folder_ownership(checker: OwnershipChecker, folder_ids: list[str]) -> None:
    """
    Ask the ownership collaborator about folder_ids.

    Raises:
        OwnershipDeniedError: If the check fails or the collaborator raises
    """
    try:
        result = await checker.check_ownership(list(folder_ids))
    except Exception as e:
        logger.error(f"Ownership check failed: {e}")
        raise OwnershipDeniedError(str(e) or "Failed to verify folder ownership") from e

    if not result.valid:
        logger.info(f"Ownership denied for folders {folder_ids}: {result.error}")
        raise OwnershipDeniedError(result.error or "Invalid folder IDs")


# =============================================================================
# In-process Implementations
# =============================================================================


class FolderOwnershipChecker:
    """Ownership check against a fixed set of folder ids."""

    def __init__(self, owned_ids: Iterable[str], delay: float = 0.0) -> None:
        self.owned_ids = set(owned_ids)
        self.delay = delay
        self.calls: list[list[str]] = []

    async def check_ownership(self, folder_ids: list[str]) -> OwnershipResult:
        self.calls.append(list(folder_ids))
        if not folder_ids:
            return OwnershipResult(False, "No folders selected")

        if self.delay:
            await asyncio.sleep(self.delay)

        unknown = [folder_id for folder_id in folder_ids if folder_id not in self.owned_ids]
        if unknown:
            return OwnershipResult(False, f"Folders not found or not owned: {', '.join(unknown)}")
        return OwnershipResult(True)


class InMemoryToolStore:
    """
    Keeps saved tools in memory, keyed by name.

    Args:
        delay: Seconds to wait before storing (simulates a network call)
        fail_with: If set, every save raises RuntimeError with this message
    """

    def __init__(self, delay: float = 0.0, fail_with: str | None = None) -> None:
        self.delay = delay
        self.fail_with = fail_with
        self.tools: dict[str, Tool] = {}
        self.save_calls = 0

    async def save(self, tool: Tool) -> None:
        self.save_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise RuntimeError(self.fail_with)
        self.tools[tool.name] = tool
        logger.info(f"Stored tool {tool.name} ({tool.kind.value})")

    def remove(self, name: str) -> None:
        if self.tools.pop(name, None) is not None:
            logger.info(f"Removed tool {name}")
