"""Main window: search, sort, filter chips and the book list.

Widgets only forward user intent to :class:`BookLibraryService`; all
filtering and ordering happens in the view pipeline and arrives back through
``VIEW_CHANGED`` via :class:`BookListModel`.
"""

from __future__ import annotations

from typing import Dict, List

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListView,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from config import settings
from core.event_bus import AppEvent, Event
from domain.errors import DuplicateBookError, InvalidBookError
from domain.models import Book, FilterKind, SortOption, compose_author
from gui.book_list_model import BookListModel
from gui.services.read_toggle_hint import ReadToggleHint
from library.book_service import FILTER_KEYS, BookLibraryService

_FILTER_LABELS = {
    FilterKind.READ: "Read",
    FilterKind.UNREAD: "Unread",
    FilterKind.YOUTH: "Youth",
    FilterKind.OWNED: "Owned",
    FilterKind.NON_FICTION: "Non-Fiction",
}


class AddBookDialog(QDialog):  # pragma: no cover - interactive
    """Two-field author entry (surname, given name) plus tags and language."""

    def __init__(self, service: BookLibraryService, parent: QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle("Add New Book")
        self._service = service
        defaults = service.form_defaults()
        self.title_edit = QLineEdit()
        self.surname_edit = QLineEdit()
        self.given_edit = QLineEdit()
        self.language_combo = QComboBox()
        self.language_combo.setEditable(True)
        self.language_combo.addItems(defaults.language_choices)
        self.language_combo.setCurrentText(defaults.language)
        self.read_check = QCheckBox("Read")
        self.read_check.setChecked(defaults.read)
        self.youth_check = QCheckBox("Youth")
        self.owned_check = QCheckBox("Owned")
        self.non_fiction_check = QCheckBox("Non-Fiction")

        form = QFormLayout()
        form.addRow("Title", self.title_edit)
        form.addRow("Surname", self.surname_edit)
        form.addRow("Name", self.given_edit)
        form.addRow("Language", self.language_combo)
        tags = QHBoxLayout()
        for box in (self.read_check, self.youth_check, self.owned_check, self.non_fiction_check):
            tags.addWidget(box)
        form.addRow(tags)
        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._save)
        buttons.rejected.connect(self.reject)
        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def _save(self) -> None:
        language = self.language_combo.currentText()
        if language not in self._service.form_defaults().language_choices:
            language = self._service.add_custom_language(language)
        book = Book(
            title=self.title_edit.text().strip(),
            author=compose_author(self.surname_edit.text(), self.given_edit.text()),
            language=language or settings.DEFAULT_LANGUAGE,
            read=self.read_check.isChecked(),
            is_youth=self.youth_check.isChecked(),
            is_on_shelf=self.owned_check.isChecked(),
            is_non_fiction=self.non_fiction_check.isChecked(),
        )
        try:
            self._service.add_book(book)
        except (DuplicateBookError, InvalidBookError) as exc:
            QMessageBox.warning(self, "Cannot add book", str(exc))
            return
        self.accept()


class MainWindow(QMainWindow):  # pragma: no cover - exercised via smoke test
    def __init__(self, service: BookLibraryService, hint: ReadToggleHint | None = None):
        super().__init__()
        self.setWindowTitle("Book Tracker")
        self._service = service
        self._hint = hint
        self.model = BookListModel(service, hint=hint)

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search title or author")
        self.search_edit.textChanged.connect(service.set_search)

        self.sort_combo = QComboBox()
        for option in SortOption:
            self.sort_combo.addItem(option.value.title(), option)

        self.font_combo = QComboBox()
        for label, scale in settings.FONT_SCALE_OPTIONS:
            self.font_combo.addItem(label, scale)

        self.filter_boxes: Dict[FilterKind, QCheckBox] = {}
        filters = QHBoxLayout()
        for kind, label in _FILTER_LABELS.items():
            box = QCheckBox(label)
            box.toggled.connect(lambda checked, k=kind: service.set_filter(k, checked))
            self.filter_boxes[kind] = box
            filters.addWidget(box)

        self.language_row = QHBoxLayout()
        self._language_boxes: List[QCheckBox] = []

        self.list_view = QListView()
        self.list_view.setModel(self.model)
        delete_action = QAction("Delete", self)
        delete_action.setShortcut(QKeySequence.StandardKey.Delete)
        delete_action.triggered.connect(self._delete_selected)
        self.list_view.addAction(delete_action)
        self.list_view.setContextMenuPolicy(Qt.ContextMenuPolicy.ActionsContextMenu)

        self.empty_label = QLabel()
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        add_button = QPushButton("Add Book")
        add_button.clicked.connect(self._open_add_dialog)

        top = QHBoxLayout()
        top.addWidget(self.search_edit, 1)
        top.addWidget(self.sort_combo)
        top.addWidget(self.font_combo)
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.addLayout(top)
        layout.addLayout(filters)
        layout.addLayout(self.language_row)
        layout.addWidget(self.list_view, 1)
        layout.addWidget(self.empty_label)
        layout.addWidget(add_button)
        self.setCentralWidget(central)

        service.event_bus.subscribe(AppEvent.VIEW_CHANGED, self._on_view_changed)
        service.event_bus.subscribe(AppEvent.READ_TOGGLE_HINT, self._on_hint)
        self._sync_controls()
        # Populating the combos must not write preferences
        self.sort_combo.currentIndexChanged.connect(self._on_sort_selected)
        self.font_combo.currentIndexChanged.connect(self._on_font_selected)

    # ------------------------------------------------------------------
    def _sync_controls(self) -> None:
        state = self._service.view_state()
        snapshot = self._service.store.snapshot()
        for kind, box in self.filter_boxes.items():
            box.blockSignals(True)
            box.setChecked(bool(snapshot[FILTER_KEYS[kind]]))
            box.blockSignals(False)
        self.sort_combo.blockSignals(True)
        self.sort_combo.setCurrentIndex(self.sort_combo.findData(state.sort_option))
        self.sort_combo.blockSignals(False)
        self._apply_font_scale(self._service.font_scale())
        self._rebuild_language_chips(state.selected_languages)
        self._update_empty_label()

    def _rebuild_language_chips(self, selected: frozenset[str]) -> None:
        for box in self._language_boxes:
            self.language_row.removeWidget(box)
            box.deleteLater()
        self._language_boxes = []
        languages = self._service.available_languages()
        if not languages:
            box = QCheckBox("No languages found.")
            box.setEnabled(False)
            self._language_boxes.append(box)
            self.language_row.addWidget(box)
            return
        for language in languages:
            box = QCheckBox(language)
            box.setChecked(language in selected)
            box.toggled.connect(lambda _checked, lang=language: self._service.toggle_language(lang))
            self._language_boxes.append(box)
            self.language_row.addWidget(box)

    def _update_empty_label(self) -> None:
        self.empty_label.setText(self.model.empty_message())

    def _apply_font_scale(self, scale: float) -> None:
        font = self.font()
        font.setPointSizeF(10.0 * scale)
        self.list_view.setFont(font)
        index = self.font_combo.findData(scale)
        if index >= 0:
            self.font_combo.blockSignals(True)
            self.font_combo.setCurrentIndex(index)
            self.font_combo.blockSignals(False)

    # ------------------------------------------------------------------
    def _on_view_changed(self, _evt: Event) -> None:
        self._sync_controls()

    def _on_hint(self, evt: Event) -> None:
        self.statusBar().showMessage(str(evt.payload), 4000)

    def _on_sort_selected(self, index: int) -> None:
        self._service.set_sort(self.sort_combo.itemData(index))

    def _on_font_selected(self, index: int) -> None:
        scale = self._service.set_font_scale(float(self.font_combo.itemData(index)))
        self._apply_font_scale(scale)

    def _delete_selected(self) -> None:
        index = self.list_view.currentIndex()
        row = self.model.row_at(index.row()) if index.isValid() else None
        if row is not None:
            self._service.delete_book(row.key)

    def _open_add_dialog(self) -> None:
        AddBookDialog(self._service, self).exec()
