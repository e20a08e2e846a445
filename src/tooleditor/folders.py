"""
Knowledge folder browser.

Selection, expansion and search over the read-only list of knowledge folders a
knowledge tool can reference. The folder list itself is never modified.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

# Search is only worth showing for larger libraries
SEARCH_MIN_FOLDERS = 5
SEARCH_MIN_DOCUMENTS = 10


@dataclass(frozen=True)
class KnowledgeFolder:
    """A folder of uploaded documents."""
    id: str
    name: str
    document_count: int = 0

    def __post_init__(self) -> None:
        if self.document_count < 0:
            raise ValueError(f"document_count must be >= 0, got {self.document_count}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KnowledgeFolder":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            document_count=int(data.get("document_count", data.get("documentCount", 0))),
        )


def document_label(folder: KnowledgeFolder) -> str:
    if folder.document_count == 1:
        return "1 document"
    return f"{folder.document_count} documents"


@dataclass
class FolderBrowser:
    """
    Browsing state for the knowledge folder picker.

    Attributes:
        folders: Available folders, in display order
        selected: Selected folder ids, in selection order
        expanded: Folder ids whose details are expanded
    """
    folders: tuple[KnowledgeFolder, ...] = ()
    selected: list[str] = field(default_factory=list)
    expanded: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.folders = tuple(self.folders)
        self.selected = list(dict.fromkeys(self.selected))

    @property
    def total_documents(self) -> int:
        return sum(folder.document_count for folder in self.folders)

    @property
    def should_show_search(self) -> bool:
        return (
            len(self.folders) > SEARCH_MIN_FOLDERS
            and self.total_documents > SEARCH_MIN_DOCUMENTS
        )

    def get(self, folder_id: str) -> KnowledgeFolder | None:
        for folder in self.folders:
            if folder.id == folder_id:
                return folder
        return None

    def filter(self, query: str = "") -> list[KnowledgeFolder]:
        """Folders whose name contains query, case-insensitively."""
        needle = query.strip().lower()
        if not needle:
            return list(self.folders)
        return [folder for folder in self.folders if needle in folder.name.lower()]

    def is_selected(self, folder_id: str) -> bool:
        return folder_id in self.selected

    def toggle_selection(self, folder_id: str) -> bool:
        """Select or deselect a folder. Returns True if it is now selected."""
        if folder_id in self.selected:
            self.selected.remove(folder_id)
            return False
        self.selected.append(folder_id)
        return True

    def set_selection(self, folder_ids: Iterable[str]) -> None:
        self.selected = list(dict.fromkeys(folder_ids))

    def toggle_expanded(self, folder_id: str) -> bool:
        if folder_id in self.expanded:
            self.expanded.discard(folder_id)
            return False
        self.expanded.add(folder_id)
        return True

    def selection_summary(self) -> str:
        count = len(self.selected)
        if count == 1:
            return "1 folder selected"
        return f"{count} folders selected"
