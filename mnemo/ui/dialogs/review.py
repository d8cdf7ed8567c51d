"""Card dialog: study a library card or review an active one."""

import base64
import logging

from PySide6.QtWidgets import (QDialog, QVBoxLayout, QHBoxLayout, QPushButton,
                              QLabel, QFrame, QMessageBox)
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFont, QPixmap, QKeySequence, QShortcut

from ...engine import srs
from ...engine.models import now_ms
from ...engine.queue import format_time_left

logger = logging.getLogger(__name__)


def pixmap_from_data_uri(uri):
    """Decode a ``data:image/...;base64,`` URI; None if it is not one."""
    if not uri or not uri.startswith("data:") or "," not in uri:
        return None
    try:
        data = base64.b64decode(uri.split(",", 1)[1])
    except ValueError:
        logger.warning("Card image is not valid base64")
        return None
    pixmap = QPixmap()
    if not pixmap.loadFromData(data):
        return None
    return pixmap


class ReviewDialog(QDialog):
    """Shows one card.

    With ``on_next`` the dialog is in review mode: the Next button advances the
    card one rung and is only enabled once the card is ready. Without it the
    dialog offers to start learning the card.
    """

    def __init__(self, card, store, speaker, voice=None, now=None, on_next=None, parent=None):
        super().__init__(parent)
        self.card = card
        self.store = store
        self.speaker = speaker
        self.voice = voice or None
        self.on_next = on_next
        self.now = now if now is not None else now_ms()
        self.cancel_speech = None

        self.setWindowTitle(card.word)
        self.setModal(True)
        self.resize(480, 560)
        self.setup_ui()
        self.setup_shortcuts()

        self.speaker.audio_finished.connect(self.on_audio_finished)

        # Countdown for a card that is not ready yet
        self.countdown_timer = QTimer(self)
        self.countdown_timer.timeout.connect(self.update_countdown)
        if self.review_mode:
            self.update_countdown()
            self.countdown_timer.start(1000)

    @property
    def review_mode(self):
        return self.on_next is not None

    def setup_ui(self):
        layout = QVBoxLayout()

        header_layout = QHBoxLayout()
        folder_name = self.store.folder_name(self.card)
        self.folder_label = QLabel(f"📁 {folder_name}" if folder_name else "")
        self.folder_label.setStyleSheet("QLabel { color: #7f8c8d; }")
        header_layout.addWidget(self.folder_label)
        header_layout.addStretch()

        self.audio_btn = QPushButton("🔊")
        self.audio_btn.setFixedSize(40, 30)
        self.audio_btn.setToolTip("Listen")
        self.audio_btn.clicked.connect(self.toggle_audio)
        header_layout.addWidget(self.audio_btn)
        layout.addLayout(header_layout)

        card_frame = QFrame()
        card_frame.setFrameStyle(QFrame.StyledPanel)
        card_layout = QVBoxLayout(card_frame)
        card_layout.setSpacing(12)

        self.image_label = QLabel()
        self.image_label.setAlignment(Qt.AlignCenter)
        pixmap = pixmap_from_data_uri(self.card.image_ref)
        if pixmap is not None:
            self.image_label.setPixmap(pixmap.scaled(360, 240, Qt.KeepAspectRatio, Qt.SmoothTransformation))
        else:
            self.image_label.setVisible(False)
        card_layout.addWidget(self.image_label)

        meaning_label = QLabel(self.card.meaning)
        meaning_label.setAlignment(Qt.AlignCenter)
        meaning_label.setWordWrap(True)
        meaning_label.setStyleSheet("QLabel { color: #27ae60; font-weight: bold; font-size: 16px; }")
        card_layout.addWidget(meaning_label)

        word_label = QLabel(self.card.word)
        word_label.setAlignment(Qt.AlignCenter)
        word_label.setWordWrap(True)
        word_font = QFont()
        word_font.setPointSize(26)
        word_font.setBold(True)
        word_label.setFont(word_font)
        word_label.setStyleSheet("QLabel { color: #1a252f; }")
        card_layout.addWidget(word_label)

        if self.card.keyword:
            keyword_label = QLabel(f"🔑 {self.card.keyword}")
            keyword_label.setAlignment(Qt.AlignCenter)
            keyword_label.setStyleSheet("QLabel { color: #c0392b; font-weight: bold; }")
            card_layout.addWidget(keyword_label)

        if self.card.story:
            story_label = QLabel(self.card.story)
            story_label.setAlignment(Qt.AlignCenter)
            story_label.setWordWrap(True)
            story_label.setStyleSheet("QLabel { color: #555; font-style: italic; }")
            card_layout.addWidget(story_label)

        layout.addWidget(card_frame, 1)

        self.status_label = QLabel()
        self.status_label.setAlignment(Qt.AlignCenter)
        self.status_label.setStyleSheet("QLabel { color: #7f8c8d; }")
        layout.addWidget(self.status_label)

        button_layout = QHBoxLayout()
        self.delete_btn = QPushButton("🗑️ Delete")
        self.delete_btn.clicked.connect(self.delete_card)
        button_layout.addWidget(self.delete_btn)

        if self.review_mode:
            self.remove_btn = QPushButton("↩ Back to Library")
            self.remove_btn.clicked.connect(self.remove_from_queue)
            button_layout.addWidget(self.remove_btn)
            button_layout.addStretch()

            self.next_btn = QPushButton(f"Next ({srs.next_label(self.card.interval_index)})")
            self.next_btn.setStyleSheet("QPushButton { background-color: #2ed573; color: white; min-height: 40px; padding: 0 16px; }")
            self.next_btn.clicked.connect(self.next_review)
            button_layout.addWidget(self.next_btn)
        else:
            button_layout.addStretch()
            self.activate_btn = QPushButton("⏰ Start Learning")
            self.activate_btn.setStyleSheet("QPushButton { background-color: #0078d7; color: white; min-height: 40px; padding: 0 16px; }")
            self.activate_btn.clicked.connect(self.activate_card)
            self.activate_btn.setEnabled(not self.card.is_active)
            button_layout.addWidget(self.activate_btn)

        layout.addLayout(button_layout)
        self.setLayout(layout)

    def setup_shortcuts(self):
        space_shortcut = QShortcut(QKeySequence(Qt.Key_Space), self)
        space_shortcut.activated.connect(self.handle_space_key)

    def handle_space_key(self):
        if self.review_mode and self.next_btn.isEnabled():
            self.next_review()
        else:
            self.toggle_audio()

    def update_countdown(self):
        if self.countdown_timer.isActive():
            self.now = now_ms()
        time_left = format_time_left(self.card.next_review_time, self.now)
        self.next_btn.setEnabled(time_left is None)
        self.status_label.setText(f"⏳ Next review in {time_left}" if time_left else "🔔 Ready for review")
        if time_left is None:
            self.countdown_timer.stop()

    def toggle_audio(self):
        if self.cancel_speech is not None:
            self.cancel_speech()
            return
        self.cancel_speech = self.speaker.speak(self.card.word, self.voice, meaning=self.card.meaning)
        self.audio_btn.setText("⏹")

    def on_audio_finished(self):
        self.cancel_speech = None
        self.audio_btn.setText("🔊")

    def next_review(self):
        if self.on_next(self.card.id):
            self.accept()

    def activate_card(self):
        if self.store.activate(self.card.id):
            self.accept()

    def remove_from_queue(self):
        self.store.deactivate(self.card.id)
        self.accept()

    def delete_card(self):
        reply = QMessageBox.question(
            self, "Delete Card", "Delete this card permanently?",
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No
        )
        if reply == QMessageBox.Yes:
            self.store.delete(self.card.id)
            self.accept()

    def done(self, result):
        self.countdown_timer.stop()
        if self.cancel_speech is not None:
            self.cancel_speech()
        self.speaker.audio_finished.disconnect(self.on_audio_finished)
        super().done(result)
