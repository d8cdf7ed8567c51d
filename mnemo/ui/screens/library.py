"""Library screen for Mnemo: cards not yet in the active queue."""

from PySide6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
                              QLabel, QComboBox, QFrame, QListWidget, QListWidgetItem,
                              QInputDialog, QMessageBox, QMenu, QAbstractItemView,
                              QFileDialog)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont

ITEMS_PER_PAGE = 20


class LibraryScreen(QWidget):
    """Folder browser and card list for library cards."""

    # Signals
    view_requested = Signal(str)  # card_id
    card_activated = Signal(str)  # card_id
    add_cards_requested = Signal()
    preferences_requested = Signal()

    def __init__(self, store):
        super().__init__()
        self.store = store
        self.selected_folder_id = None
        self.visible_count = ITEMS_PER_PAGE
        self.setup_ui()
        self.refresh()

    def setup_ui(self):
        """Set up the library screen UI."""
        layout = QVBoxLayout()

        header_layout = QHBoxLayout()
        title = QLabel("Library")
        title_font = QFont()
        title_font.setPointSize(22)
        title_font.setBold(True)
        title.setFont(title_font)
        header_layout.addWidget(title)
        header_layout.addStretch()

        self.add_btn = QPushButton("+ Add Cards")
        self.add_btn.clicked.connect(self.add_cards_requested.emit)
        self.add_btn.setStyleSheet("QPushButton { background-color: #0078d7; color: white; padding: 4px 8px; }")
        header_layout.addWidget(self.add_btn)

        self.prefs_btn = QPushButton("⚙")
        self.prefs_btn.setFixedWidth(32)
        self.prefs_btn.setToolTip("Preferences")
        self.prefs_btn.clicked.connect(self.preferences_requested.emit)
        header_layout.addWidget(self.prefs_btn)
        layout.addLayout(header_layout)

        # Folder bar
        folder_frame = QFrame()
        folder_frame.setFrameStyle(QFrame.StyledPanel)
        folder_layout = QHBoxLayout(folder_frame)
        folder_layout.addWidget(QLabel("Folder:"))
        self.folder_combo = QComboBox()
        self.folder_combo.currentIndexChanged.connect(self.on_folder_selected)
        folder_layout.addWidget(self.folder_combo, 1)

        self.new_folder_btn = QPushButton("+ New Folder")
        self.new_folder_btn.clicked.connect(self.create_folder)
        folder_layout.addWidget(self.new_folder_btn)

        self.delete_folder_btn = QPushButton("Delete Folder")
        self.delete_folder_btn.clicked.connect(self.delete_folder)
        folder_layout.addWidget(self.delete_folder_btn)
        layout.addWidget(folder_frame)

        # Card list
        self.card_list = QListWidget()
        self.card_list.itemDoubleClicked.connect(self.on_card_double_clicked)
        self.card_list.setContextMenuPolicy(Qt.CustomContextMenu)
        self.card_list.customContextMenuRequested.connect(self.show_card_context_menu)
        self.card_list.itemSelectionChanged.connect(self.update_ui_state)
        layout.addWidget(self.card_list, 1)

        self.empty_label = QLabel("No cards yet. Use 'Add Cards' to create some!")
        self.empty_label.setAlignment(Qt.AlignCenter)
        self.empty_label.setStyleSheet("color: grey; padding: 20px; font-style: italic;")
        layout.addWidget(self.empty_label)

        self.load_more_btn = QPushButton("Load more")
        self.load_more_btn.clicked.connect(self.load_more)
        layout.addWidget(self.load_more_btn)

        # Actions
        action_layout = QHBoxLayout()
        self.select_btn = QPushButton("Select")
        self.select_btn.setCheckable(True)
        self.select_btn.toggled.connect(self.toggle_selection_mode)
        action_layout.addWidget(self.select_btn)

        self.bulk_delete_btn = QPushButton("Delete Selected")
        self.bulk_delete_btn.clicked.connect(self.bulk_delete)
        self.bulk_delete_btn.setStyleSheet("QPushButton { color: #c0392b; }")
        action_layout.addWidget(self.bulk_delete_btn)

        action_layout.addStretch()

        self.export_btn = QPushButton("Export Words")
        self.export_btn.clicked.connect(self.export_words)
        action_layout.addWidget(self.export_btn)
        layout.addLayout(action_layout)

        self.setLayout(layout)

    def refresh(self):
        """Rebuild the folder selector and card list from the store."""
        self.refresh_folders()
        self.refresh_cards()

    def refresh_folders(self):
        # A deleted folder falls back to "All"
        if self.selected_folder_id and self.store.get_folder(self.selected_folder_id) is None:
            self.selected_folder_id = None

        self.folder_combo.blockSignals(True)
        self.folder_combo.clear()
        self.folder_combo.addItem("All", None)
        for folder in self.store.folders:
            self.folder_combo.addItem(f"📁 {folder.name}", folder.id)
        index = self.folder_combo.findData(self.selected_folder_id)
        self.folder_combo.setCurrentIndex(max(index, 0))
        self.folder_combo.blockSignals(False)

    def refresh_cards(self):
        cards = self.store.library_cards(self.selected_folder_id)

        self.card_list.clear()
        for card in cards[:self.visible_count]:
            text = f"{card.word}  ·  {card.meaning}"
            folder_name = self.store.folder_name(card)
            if folder_name and not self.selected_folder_id:
                text += f"   [{folder_name}]"
            item = QListWidgetItem(text)
            item.setData(Qt.UserRole, card.id)
            item.setToolTip(f"{card.keyword}\n{card.story}")
            self.card_list.addItem(item)

        self.empty_label.setVisible(not cards)
        self.card_list.setVisible(bool(cards))
        self.load_more_btn.setVisible(len(cards) > self.visible_count)
        self.update_ui_state()

    def update_ui_state(self):
        selecting = self.select_btn.isChecked()
        self.bulk_delete_btn.setVisible(selecting)
        self.bulk_delete_btn.setEnabled(bool(self.card_list.selectedItems()))
        self.delete_folder_btn.setEnabled(self.selected_folder_id is not None)
        self.export_btn.setEnabled(self.card_list.count() > 0)

    def on_folder_selected(self, index):
        self.selected_folder_id = self.folder_combo.itemData(index)
        self.visible_count = ITEMS_PER_PAGE
        self.refresh_cards()

    def load_more(self):
        self.visible_count += ITEMS_PER_PAGE
        self.refresh_cards()

    def create_folder(self):
        name, ok = QInputDialog.getText(self, "New Folder", "Folder name:")
        if not ok or not name.strip():
            return
        folder = self.store.create_folder(name)
        self.selected_folder_id = folder.id
        self.refresh()

    def delete_folder(self):
        folder = self.store.get_folder(self.selected_folder_id)
        if folder is None:
            return
        reply = QMessageBox.question(
            self, "Delete Folder",
            f"Delete folder '{folder.name}'? Cards inside will remain but become uncategorized.",
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            self.store.delete_folder(folder.id)

    def toggle_selection_mode(self, enabled):
        mode = QAbstractItemView.MultiSelection if enabled else QAbstractItemView.SingleSelection
        self.card_list.setSelectionMode(mode)
        self.card_list.clearSelection()
        self.select_btn.setText("Done" if enabled else "Select")
        self.update_ui_state()

    def bulk_delete(self):
        card_ids = [item.data(Qt.UserRole) for item in self.card_list.selectedItems()]
        if not card_ids:
            return
        reply = QMessageBox.question(
            self, "Delete Cards",
            f"Are you sure you want to delete {len(card_ids)} cards?",
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            self.store.bulk_delete(card_ids)
            self.select_btn.setChecked(False)

    def on_card_double_clicked(self, item):
        if self.select_btn.isChecked():
            return
        self.view_requested.emit(item.data(Qt.UserRole))

    def show_card_context_menu(self, position):
        item = self.card_list.itemAt(position)
        if not item:
            return
        card_id = item.data(Qt.UserRole)

        menu = QMenu(self)
        activate_action = menu.addAction("⏰ Start Learning")
        view_action = menu.addAction("👁 View Card")
        menu.addSeparator()
        delete_action = menu.addAction("🗑️ Delete Card")

        action = menu.exec(self.card_list.mapToGlobal(position))
        if action == activate_action:
            if self.store.activate(card_id):
                self.card_activated.emit(card_id)
        elif action == view_action:
            self.view_requested.emit(card_id)
        elif action == delete_action:
            reply = QMessageBox.question(
                self, "Delete Card", "Delete this card permanently?",
                QMessageBox.Yes | QMessageBox.No, QMessageBox.No
            )
            if reply == QMessageBox.Yes:
                self.store.delete(card_id)

    def export_words(self):
        text = self.store.export_words(self.selected_folder_id)
        if not text:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export Words", "words.txt", "Text files (*.txt)")
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            QMessageBox.critical(self, "Export Failed", f"Could not write file: {e}")
