"""System notifications and the "any sign of life" alarm silencer."""

import logging
from typing import Callable

from PySide6.QtCore import QEvent, QObject
from PySide6.QtWidgets import QSystemTrayIcon

from ..engine.alarm import Notifier
from .config import ConfigManager

logger = logging.getLogger(__name__)


class TrayNotifier(Notifier):
    """Notifications through the system tray icon.

    "Permission" means the platform has a tray that shows messages and the
    user has not switched notifications off.
    """

    def __init__(self, tray: QSystemTrayIcon, config: ConfigManager):
        self.tray = tray
        self.config = config

    def _supported(self) -> bool:
        return QSystemTrayIcon.isSystemTrayAvailable() and QSystemTrayIcon.supportsMessages()

    def request_permission(self) -> bool:
        if not self._supported():
            logger.info("System notifications unavailable on this platform")
            return False
        self.tray.show()
        return self.permission_granted()

    def permission_granted(self) -> bool:
        return self._supported() and self.config.notifications_enabled

    def notify(self, title: str, body: str) -> None:
        if not self.permission_granted():
            return
        self.tray.showMessage(title, body, QSystemTrayIcon.Information, 10000)


class InteractionFilter(QObject):
    """Application-wide event filter calling ``on_interaction`` on any input."""

    INTERACTION_EVENTS = (
        QEvent.MouseButtonPress,
        QEvent.KeyPress,
        QEvent.TouchBegin,
    )

    def __init__(self, on_interaction: Callable[[], None], parent=None):
        super().__init__(parent)
        self.on_interaction = on_interaction

    def eventFilter(self, watched, event):
        if event.type() in self.INTERACTION_EVENTS:
            self.on_interaction()
        return False
