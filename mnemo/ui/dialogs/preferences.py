"""Preferences dialog for Mnemo application."""

from PySide6.QtWidgets import (QDialog, QVBoxLayout, QHBoxLayout, QPushButton,
                              QLabel, QLineEdit, QComboBox, QMessageBox,
                              QGroupBox, QCheckBox)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont

from ...utils.config import TEXT_MODELS, IMAGE_MODELS
from ...utils.tts import DEFAULT_VOICE, VoiceListWorker

PREVIEW_TEXT = "مرحبا"


class PreferencesDialog(QDialog):
    """Dialog for managing application preferences."""

    # Signal emitted when preferences are saved
    preferences_saved = Signal()

    def __init__(self, config, speaker, parent=None):
        super().__init__(parent)
        self.config = config
        self.speaker = speaker
        self.voice_worker = None
        self.setWindowTitle("Preferences")
        self.setModal(True)
        self.resize(520, 380)
        self.setup_ui()
        self.load_current_settings()
        self.load_voices()

    def setup_ui(self):
        """Set up the preferences dialog UI."""
        layout = QVBoxLayout()

        title = QLabel("Preferences")
        title_font = QFont()
        title_font.setPointSize(18)
        title_font.setBold(True)
        title.setFont(title_font)
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        layout.addSpacing(20)

        # AI Settings Group
        ai_group = QGroupBox("AI Card Generation")
        ai_layout = QVBoxLayout(ai_group)

        api_layout = QHBoxLayout()
        api_layout.addWidget(QLabel("Gemini API Key:"))
        self.api_key_input = QLineEdit()
        self.api_key_input.setPlaceholderText("Enter your Gemini API key...")
        self.api_key_input.setEchoMode(QLineEdit.Password)
        self.api_key_input.setMinimumWidth(300)
        api_layout.addWidget(self.api_key_input)
        ai_layout.addLayout(api_layout)

        text_layout = QHBoxLayout()
        text_layout.addWidget(QLabel("Text Model:"))
        self.text_model_combo = QComboBox()
        for model_id, label in TEXT_MODELS:
            self.text_model_combo.addItem(label, model_id)
        text_layout.addWidget(self.text_model_combo, 1)
        ai_layout.addLayout(text_layout)

        image_layout = QHBoxLayout()
        image_layout.addWidget(QLabel("Image Model:"))
        self.image_model_combo = QComboBox()
        for model_id, label in IMAGE_MODELS:
            self.image_model_combo.addItem(label, model_id)
        image_layout.addWidget(self.image_model_combo, 1)
        ai_layout.addLayout(image_layout)

        help_label = QLabel("Get your free API key from: https://ai.google.dev/")
        help_label.setStyleSheet("color: #666; font-size: 11px;")
        ai_layout.addWidget(help_label)

        layout.addWidget(ai_group)

        # Audio Settings Group
        audio_group = QGroupBox("Voice")
        audio_layout = QHBoxLayout(audio_group)
        audio_layout.addWidget(QLabel("Arabic Voice:"))
        self.voice_combo = QComboBox()
        self.voice_combo.addItem("Default", "")
        audio_layout.addWidget(self.voice_combo, 1)

        self.preview_btn = QPushButton("▶ Preview")
        self.preview_btn.clicked.connect(self.preview_voice)
        audio_layout.addWidget(self.preview_btn)
        layout.addWidget(audio_group)

        # Notifications
        notify_group = QGroupBox("Reminders")
        notify_layout = QVBoxLayout(notify_group)
        self.notifications_cb = QCheckBox("Show a notification when a card is due and Mnemo is in the background")
        notify_layout.addWidget(self.notifications_cb)
        layout.addWidget(notify_group)

        layout.addStretch()

        # Buttons
        button_layout = QHBoxLayout()

        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self.reject)
        button_layout.addWidget(self.cancel_btn)

        button_layout.addStretch()

        self.save_btn = QPushButton("Save")
        self.save_btn.clicked.connect(self.save_preferences)
        self.save_btn.setStyleSheet("QPushButton { background-color: #0078d7; color: white; padding: 8px 16px; }")
        self.save_btn.setDefault(True)
        button_layout.addWidget(self.save_btn)

        layout.addLayout(button_layout)

        self.setLayout(layout)

    def load_current_settings(self):
        """Load current settings from config."""
        saved_api_key = self.config.get("api_key")
        if saved_api_key:
            self.api_key_input.setText(saved_api_key)

        self._select(self.text_model_combo, self.config.text_model)
        self._select(self.image_model_combo, self.config.image_model)
        self.notifications_cb.setChecked(self.config.notifications_enabled)

    @staticmethod
    def _select(combo, value):
        index = combo.findData(value)
        if index < 0:
            combo.addItem(value, value)
            index = combo.count() - 1
        combo.setCurrentIndex(index)

    def load_voices(self):
        """Fetch the voice list in the background."""
        self.voice_combo.setEnabled(False)
        self.voice_worker = VoiceListWorker("ar")
        self.voice_worker.voices_loaded.connect(self.on_voices_loaded)
        self.voice_worker.start()

    def on_voices_loaded(self, voices):
        for voice in voices:
            short_name = voice.get("ShortName", "")
            if not short_name:
                continue
            label = f"{short_name} ({voice.get('Gender', '?')})"
            if short_name == DEFAULT_VOICE:
                label += " - default"
            self.voice_combo.addItem(label, short_name)

        selected = self.config.selected_voice
        if selected:
            self._select(self.voice_combo, selected)
        self.voice_combo.setEnabled(True)

    def preview_voice(self):
        self.speaker.speak(PREVIEW_TEXT, self.voice_combo.currentData() or None)

    def save_preferences(self):
        """Save preferences to config."""
        api_key = self.api_key_input.text().strip()
        if api_key:
            self.config.set_api_key(api_key)

        self.config.set("text_model", self.text_model_combo.currentData())
        self.config.set("image_model", self.image_model_combo.currentData())
        self.config.set("selected_voice", self.voice_combo.currentData() or "")
        self.config.set("notifications_enabled", self.notifications_cb.isChecked())

        self.preferences_saved.emit()
        QMessageBox.information(self, "Preferences Saved",
                                "Your preferences have been saved successfully!")
        self.accept()

    def done(self, result):
        self.speaker.stop()
        if self.voice_worker and self.voice_worker.isRunning():
            self.voice_worker.wait()
        super().done(result)
