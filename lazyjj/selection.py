"""Selected-item values shared by views, custom commands and templates."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SelectedRevision:
    change_id: str
    commit_id: str = ""


@dataclass(frozen=True)
class SelectedFile:
    change_id: str
    commit_id: str
    file: str


@dataclass(frozen=True)
class SelectedOperation:
    operation_id: str


SelectedItem = SelectedRevision | SelectedFile | SelectedOperation


def item_kind(item: SelectedItem | None) -> str | None:
    if isinstance(item, SelectedRevision):
        return "revision"
    if isinstance(item, SelectedFile):
        return "file"
    if isinstance(item, SelectedOperation):
        return "operation"
    return None


def placeholders(item: SelectedItem | None, *, width: int = 80, revset: str = "") -> dict[str, str]:
    """Values for ``$placeholder`` expansion in command templates."""
    values = {"width": str(width), "revset": revset}
    if isinstance(item, (SelectedRevision, SelectedFile)):
        values["change_id"] = item.change_id
        values["commit_id"] = item.commit_id
    if isinstance(item, SelectedFile):
        values["file"] = item.file
    if isinstance(item, SelectedOperation):
        values["operation_id"] = item.operation_id
    return values
