"""Book List Model

QAbstractListModel over :class:`BookListViewModel` rows. The display text is
the title; custom roles expose the reordered author, language and tag badges.
The check state mirrors the read flag; toggling it goes through the library
service (and counts towards the read-toggle hint).
"""

from __future__ import annotations

from typing import Any, List, Optional

from PyQt6.QtCore import QAbstractListModel, QModelIndex, Qt

from gui.services.read_toggle_hint import ReadToggleHint
from gui.viewmodels.book_list_viewmodel import BookListViewModel, BookRow
from library.book_service import BookLibraryService


class BookListModel(QAbstractListModel):  # pragma: no cover - exercised via tests
    AuthorRole = Qt.ItemDataRole.UserRole + 1
    LanguageRole = Qt.ItemDataRole.UserRole + 2
    BadgesRole = Qt.ItemDataRole.UserRole + 3
    KeyRole = Qt.ItemDataRole.UserRole + 4

    def __init__(
        self,
        service: BookLibraryService,
        viewmodel: BookListViewModel | None = None,
        hint: ReadToggleHint | None = None,
    ):
        super().__init__()
        self._service = service
        self._vm = viewmodel or BookListViewModel(service)
        self._hint = hint
        self._rows: List[BookRow] = self._vm.rows()
        self._vm.add_listener(self._on_rows_changed)

    def _on_rows_changed(self, rows: List[BookRow]) -> None:
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()

    def empty_message(self) -> str:
        return self._vm.empty_message()

    def row_at(self, row: int) -> Optional[BookRow]:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    # Required overrides
    def rowCount(self, parent: QModelIndex = QModelIndex()):  # type: ignore[override]
        if parent.isValid():
            return 0
        return len(self._rows)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:  # type: ignore[override]
        row = self.row_at(index.row()) if index.isValid() else None
        if row is None:
            return None
        if role == Qt.ItemDataRole.DisplayRole:
            return row.title
        if role == Qt.ItemDataRole.ToolTipRole:
            return f"{row.title} by {row.author} ({row.language})"
        if role == Qt.ItemDataRole.CheckStateRole:
            return Qt.CheckState.Checked if row.read else Qt.CheckState.Unchecked
        if role == self.AuthorRole:
            return row.author
        if role == self.LanguageRole:
            return row.language
        if role == self.BadgesRole:
            return list(row.badges)
        if role == self.KeyRole:
            return row.key
        return None

    def flags(self, index: QModelIndex):  # type: ignore[override]
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        return (
            Qt.ItemFlag.ItemIsEnabled
            | Qt.ItemFlag.ItemIsSelectable
            | Qt.ItemFlag.ItemIsUserCheckable
        )

    def setData(self, index: QModelIndex, value: Any, role: int = Qt.ItemDataRole.EditRole) -> bool:  # type: ignore[override]
        if role != Qt.ItemDataRole.CheckStateRole or not index.isValid():
            return False
        row = self.row_at(index.row())
        if row is None:
            return False
        checked = value in (Qt.CheckState.Checked, Qt.CheckState.Checked.value)
        if checked != row.read:
            self._service.update_book(row.key, read=checked)
        if self._hint is not None:
            self._hint.tap()
        return True

    def roleNames(self):  # type: ignore[override]
        names = super().roleNames()
        names[self.AuthorRole] = b"author"
        names[self.LanguageRole] = b"language"
        names[self.BadgesRole] = b"badges"
        names[self.KeyRole] = b"bookKey"
        return names


__all__ = ["BookListModel"]
