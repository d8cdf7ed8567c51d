"""Active queue screen: cards in spaced repetition, ready ones first."""

from PySide6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QComboBox,
                              QListWidget, QListWidgetItem, QMenu, QMessageBox)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont, QColor

from ...engine import srs


class ActiveScreen(QWidget):
    """Shows the queue view published by the session.

    Countdowns only move when the view is republished (a tick, a mutation or
    the window coming back to the foreground); there is no per-second timer.
    """

    # Signals
    folder_changed = Signal(object)  # folder_id or None
    review_requested = Signal(str)  # card_id

    def __init__(self, store):
        super().__init__()
        self.store = store
        self.folder_id = None
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout()

        header_layout = QHBoxLayout()
        title = QLabel("Active")
        title_font = QFont()
        title_font.setPointSize(22)
        title_font.setBold(True)
        title.setFont(title_font)
        header_layout.addWidget(title)
        header_layout.addStretch()

        self.due_label = QLabel("0 Due")
        header_layout.addWidget(self.due_label)
        layout.addLayout(header_layout)

        folder_layout = QHBoxLayout()
        folder_layout.addWidget(QLabel("Folder:"))
        self.folder_combo = QComboBox()
        self.folder_combo.currentIndexChanged.connect(self.on_folder_selected)
        folder_layout.addWidget(self.folder_combo, 1)
        layout.addLayout(folder_layout)

        self.card_list = QListWidget()
        self.card_list.itemDoubleClicked.connect(
            lambda item: self.review_requested.emit(item.data(Qt.UserRole))
        )
        self.card_list.setContextMenuPolicy(Qt.CustomContextMenu)
        self.card_list.customContextMenuRequested.connect(self.show_card_context_menu)
        layout.addWidget(self.card_list, 1)

        self.empty_label = QLabel()
        self.empty_label.setAlignment(Qt.AlignCenter)
        self.empty_label.setWordWrap(True)
        self.empty_label.setStyleSheet("color: grey; padding: 20px;")
        layout.addWidget(self.empty_label)

        self.setLayout(layout)

    def refresh_folders(self):
        self.folder_combo.blockSignals(True)
        self.folder_combo.clear()
        self.folder_combo.addItem("All", None)
        for folder in self.store.folders:
            self.folder_combo.addItem(f"📁 {folder.name}", folder.id)
        index = self.folder_combo.findData(self.folder_id)
        self.folder_combo.setCurrentIndex(max(index, 0))
        self.folder_combo.blockSignals(False)

    def on_folder_selected(self, index):
        self.folder_id = self.folder_combo.itemData(index)
        self.folder_changed.emit(self.folder_id)

    def show_queue(self, view):
        """Render a QueueView."""
        if self.folder_id and self.store.get_folder(self.folder_id) is None:
            self.folder_id = None
        self.refresh_folders()

        self.due_label.setText(f"{view.due_count} Due")
        color = "#c0392b; background-color: #fdecea" if view.due_count else "#555; background-color: #eee"
        self.due_label.setStyleSheet(f"QLabel {{ color: {color}; font-weight: bold; padding: 4px 10px; border-radius: 10px; }}")

        current = self.card_list.currentItem()
        current_id = current.data(Qt.UserRole) if current else None

        self.card_list.clear()
        for card in view.cards:
            time_left = view.time_left(card)
            status = f"⏳ {time_left}" if time_left else "🔔 Ready"
            rung = srs.LABELS[card.interval_index]
            item = QListWidgetItem(f"{card.word}  ·  {card.meaning}    {status}   ({rung})")
            item.setData(Qt.UserRole, card.id)
            if not time_left:
                item.setForeground(QColor("#c0392b"))
            self.card_list.addItem(item)
            if card.id == current_id:
                self.card_list.setCurrentItem(item)

        has_cards = bool(view.cards)
        self.card_list.setVisible(has_cards)
        self.empty_label.setVisible(not has_cards)
        if not has_cards:
            if self.folder_id:
                self.empty_label.setText("All Caught Up\n\nNo active cards in this folder.")
            else:
                self.empty_label.setText("All Caught Up\n\nMove cards from your Library to start practicing.")

    def show_card_context_menu(self, position):
        item = self.card_list.itemAt(position)
        if not item:
            return
        card_id = item.data(Qt.UserRole)

        menu = QMenu(self)
        review_action = menu.addAction("📖 Review")
        remove_action = menu.addAction("↩ Back to Library")
        menu.addSeparator()
        delete_action = menu.addAction("🗑️ Delete Card")

        action = menu.exec(self.card_list.mapToGlobal(position))
        if action == review_action:
            self.review_requested.emit(card_id)
        elif action == remove_action:
            self.store.deactivate(card_id)
        elif action == delete_action:
            reply = QMessageBox.question(
                self, "Delete Card", "Delete this card permanently?",
                QMessageBox.Yes | QMessageBox.No, QMessageBox.No
            )
            if reply == QMessageBox.Yes:
                self.store.delete(card_id)
