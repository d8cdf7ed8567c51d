"""Main UI application for Mnemo flashcard app."""

import logging
import sys

from PySide6.QtWidgets import (QApplication, QMainWindow, QTabWidget, QStyle,
                               QSystemTrayIcon, QMenu)
from PySide6.QtCore import Qt, QTimer, QByteArray
from PySide6.QtGui import QAction, QGuiApplication

from .screens.library import LibraryScreen
from .screens.active import ActiveScreen
from .screens.add_cards import AddCardsScreen
from .dialogs.preferences import PreferencesDialog
from .dialogs.review import ReviewDialog
from ..engine.alarm import AlarmSink
from ..engine.db import Database, LegacyStore, load_state, save, CARDS_KEY, FOLDERS_KEY
from ..engine.scheduler import DueScheduler
from ..engine.session import QueueSession
from ..engine.store import CardStore, restore
from ..utils.config import ConfigManager, data_dir
from ..utils.logging_config import setup_logging
from ..utils.notify import InteractionFilter, TrayNotifier
from ..utils.timers import QtDeadlineTimer
from ..utils.tone import QtTonePlayer
from ..utils.tts import CardSpeaker

logger = logging.getLogger(__name__)

CARD_SAVE_DELAY_MS = 1000


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, database: Database, config: ConfigManager, state: dict):
        super().__init__()
        self.setWindowTitle("Mnemo")
        self.resize(720, 560)
        self.setWindowIcon(self.style().standardIcon(QStyle.SP_FileDialogInfoView))

        self.database = database
        self.config = config
        home = data_dir()

        # Load cards before anything listens, so the load itself is not saved back
        self.store = CardStore()
        restore(self.store, state)
        self._saved_folders = [f.to_dict() for f in self.store.folders]

        # Scheduling core
        self.scheduler = DueScheduler(self.store.active_cards, QtDeadlineTimer(self))
        self.tray = QSystemTrayIcon(self.windowIcon(), self)
        self._setup_tray_menu()
        self.notifier = TrayNotifier(self.tray, config)
        self.alarm = AlarmSink(
            QtTonePlayer(home / "cache", self),
            QtDeadlineTimer(self),
            notifier=self.notifier,
            is_hidden=self.is_hidden,
        )
        self.session = QueueSession(self.store, self.scheduler, self.alarm)
        self.speaker = CardSpeaker(home)

        # Debounced card saves
        self.save_timer = QTimer(self)
        self.save_timer.setSingleShot(True)
        self.save_timer.timeout.connect(self.save_cards)
        self.store.add_listener(self.on_store_changed)

        # Create tab widget for main navigation
        self.tab_widget = QTabWidget()
        self.setCentralWidget(self.tab_widget)

        self.library_screen = LibraryScreen(self.store)
        self.active_screen = ActiveScreen(self.store)
        self.add_cards_screen = AddCardsScreen(self.store, self.config)

        self.tab_widget.addTab(self.library_screen, "📚 Library")
        self.tab_widget.addTab(self.active_screen, "⏰ Active Queue")
        self.tab_widget.addTab(self.add_cards_screen, "➕ Add Cards")

        # Connect signals
        self.library_screen.view_requested.connect(self.show_library_card)
        self.library_screen.add_cards_requested.connect(lambda: self.tab_widget.setCurrentWidget(self.add_cards_screen))
        self.library_screen.card_activated.connect(lambda _: self.tab_widget.setCurrentWidget(self.active_screen))
        self.library_screen.preferences_requested.connect(self.open_preferences)
        self.active_screen.folder_changed.connect(self.session.set_folder)
        self.active_screen.review_requested.connect(self.show_review)
        self.add_cards_screen.cards_added.connect(self.on_cards_added)
        self.session.on_view_changed(self.on_queue_changed)

        # Any click, key or touch anywhere silences the alarm
        self.interaction_filter = InteractionFilter(self.session.user_interacted, self)
        QApplication.instance().installEventFilter(self.interaction_filter)

        # Timers may be throttled while in the background; re-arm on return
        QGuiApplication.instance().applicationStateChanged.connect(self.on_application_state)

        self._restore_geometry()
        self.notifier.request_permission()
        self.session.start()
        self.tab_widget.setCurrentIndex(0)

    def _setup_tray_menu(self):
        menu = QMenu(self)
        show_action = QAction("Show Mnemo", self)
        show_action.triggered.connect(self.bring_to_front)
        quit_action = QAction("Quit", self)
        quit_action.triggered.connect(QApplication.instance().quit)
        menu.addAction(show_action)
        menu.addAction(quit_action)
        self.tray.setContextMenu(menu)
        self.tray.messageClicked.connect(self.bring_to_front)
        self.tray.setToolTip("Mnemo")

    def bring_to_front(self):
        self.showNormal()
        self.raise_()
        self.activateWindow()
        self.tab_widget.setCurrentWidget(self.active_screen)

    def is_hidden(self) -> bool:
        """True when the user is not looking at the window."""
        return (not self.isVisible() or self.isMinimized()
                or QGuiApplication.applicationState() != Qt.ApplicationActive)

    def on_application_state(self, state):
        if state == Qt.ApplicationActive:
            logger.debug("Back in foreground, re-arming")
            self.session.resync()

    def on_store_changed(self, store: CardStore):
        self.save_timer.start(CARD_SAVE_DELAY_MS)
        folders = [f.to_dict() for f in store.folders]
        if folders != self._saved_folders:
            if save(self.database, FOLDERS_KEY, folders):
                self._saved_folders = folders
        self.library_screen.refresh()

    def save_cards(self):
        save(self.database, CARDS_KEY, self.store.snapshot()["cards"])

    def on_queue_changed(self, view):
        self.active_screen.show_queue(view)
        title = "⏰ Active Queue"
        if view.due_count:
            title += f" ({view.due_count})"
        self.tab_widget.setTabText(self.tab_widget.indexOf(self.active_screen), title)
        self.tray.setToolTip(f"Mnemo: {view.due_count} due" if view.due_count else "Mnemo")

    def on_cards_added(self, count):
        logger.info("Added %d cards", count)
        self.tab_widget.setCurrentWidget(self.library_screen)

    def show_library_card(self, card_id: str):
        card = self.store.get_card(card_id)
        if card is None:
            return
        dialog = ReviewDialog(card, self.store, self.speaker,
                              voice=self.config.selected_voice, parent=self)
        dialog.exec()
        if card.is_active:
            self.tab_widget.setCurrentWidget(self.active_screen)

    def show_review(self, card_id: str):
        card = self.store.get_card(card_id)
        if card is None:
            return
        dialog = ReviewDialog(card, self.store, self.speaker,
                              voice=self.config.selected_voice,
                              now=self.session.clock(),
                              on_next=self.session.review, parent=self)
        dialog.exec()

    def open_preferences(self):
        dialog = PreferencesDialog(self.config, self.speaker, self)
        dialog.preferences_saved.connect(self.add_cards_screen.load_saved_settings)
        dialog.exec()

    def _restore_geometry(self):
        geometry = self.config.get("window_geometry")
        if geometry:
            self.restoreGeometry(QByteArray.fromBase64(geometry.encode()))

    def closeEvent(self, event):
        """Flush pending saves and stop timers before quitting."""
        self.save_timer.stop()
        self.save_cards()
        self.config.set("window_geometry", bytes(self.saveGeometry().toBase64()).decode())
        self.session.shutdown()
        self.speaker.stop()
        self.add_cards_screen.stop_worker()
        self.tray.hide()
        super().closeEvent(event)


def main():
    """Main application entry point."""
    app = QApplication(sys.argv)
    app.setApplicationName("Mnemo")
    app.setOrganizationName("Mnemo")

    home = data_dir()
    setup_logging(log_dir=home / "logs")

    database = Database(str(home / "mnemo.sqlite"))
    state = load_state(database, LegacyStore(home))
    config = ConfigManager(database, state.get("settings"))

    window = MainWindow(database, config, state)
    window.show()

    exit_code = app.exec()
    database.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
