"""Add Cards screen for Mnemo with Gemini AI integration."""

import logging
import random
import re
from typing import Dict, List, Optional

from PySide6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
                              QLabel, QTextEdit, QComboBox, QProgressBar,
                              QCheckBox, QMessageBox, QFrame)
from PySide6.QtCore import Qt, Signal, QThread, QMutex, QWaitCondition
from PySide6.QtGui import QFont

from ...engine.errors import GenerationError
from ...engine.models import Card
from ...utils.gemini import GeminiClient

logger = logging.getLogger(__name__)

# Pause between words in a bulk run, in seconds
BULK_DELAY_RANGE = (10, 15)


def split_words(text: str) -> List[str]:
    """Split comma or newline separated input into words."""
    return [w.strip() for w in re.split(r"[,\n]", text) if w.strip()]


class GenerationWorker(QThread):
    """Worker thread for Gemini API calls to avoid blocking UI."""

    # Signals
    progress_updated = Signal(int)  # words done
    word_processed = Signal(str, dict, bool)  # word, result, success
    finished_processing = Signal(int, int)  # success_count, total_count

    def __init__(self, words: List[str], client: GeminiClient, with_images: bool = False):
        super().__init__()
        self.words = words
        self.client = client
        self.with_images = with_images
        self.should_stop = False
        self._mutex = QMutex()
        self._wake = QWaitCondition()

    def stop(self):
        """Request to stop processing."""
        self._mutex.lock()
        self.should_stop = True
        self._wake.wakeAll()
        self._mutex.unlock()

    def run(self):
        success_count = 0

        for i, word in enumerate(self.words):
            if self.should_stop:
                break
            if i > 0 and not self._pause(random.uniform(*BULK_DELAY_RANGE)):
                break

            try:
                result = self.generate_card(word)
            except GenerationError as e:
                logger.warning("Generation failed for %r: %s", word, e)
                self.word_processed.emit(word, {"error": str(e), "kind": e.kind}, False)
            else:
                success_count += 1
                self.word_processed.emit(word, result, True)

            self.progress_updated.emit(i + 1)

        self.finished_processing.emit(success_count, len(self.words))

    def generate_card(self, word: str) -> Dict:
        result = self.client.generate(word)
        if self.with_images:
            try:
                prompt = self.client.generate_image_prompt(result["story"], result["keyword"], result["meaning"])
                result["image_prompt"] = prompt
                result["image_ref"] = self.client.generate_image(prompt)
            except GenerationError as e:
                # The text card is still worth keeping
                logger.warning("Image generation failed for %r: %s", word, e)
        return result

    def _pause(self, seconds: float) -> bool:
        """Sleep between words; False if stopped meanwhile."""
        self._mutex.lock()
        try:
            if not self.should_stop:
                self._wake.wait(self._mutex, int(seconds * 1000))
            return not self.should_stop
        finally:
            self._mutex.unlock()


class AddCardsScreen(QWidget):
    """Add Cards screen with bulk word processing and Gemini integration."""

    # Signals
    cards_added = Signal(int)  # Number of cards added

    def __init__(self, store, config):
        super().__init__()
        self.store = store
        self.config = config
        self.worker: Optional[GenerationWorker] = None
        self.target_folder_id: Optional[str] = None
        self.added_count = 0
        self.setup_ui()
        self.load_saved_settings()
        self.store.add_listener(lambda _: self.refresh_folders())

    def setup_ui(self):
        """Set up the Add Cards screen UI."""
        layout = QVBoxLayout()

        title = QLabel("Add Cards with AI")
        title_font = QFont()
        title_font.setPointSize(18)
        title_font.setBold(True)
        title.setFont(title_font)
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        layout.addSpacing(20)

        # Model section
        model_section = QFrame()
        model_section.setFrameStyle(QFrame.StyledPanel)
        model_layout = QVBoxLayout(model_section)

        model_label = QLabel("Gemini")
        model_label.setStyleSheet("font-weight: bold; font-size: 14px;")
        model_layout.addWidget(model_label)

        self.model_info = QLabel()
        self.model_info.setStyleSheet("color: grey;")
        model_layout.addWidget(self.model_info)

        self.images_cb = QCheckBox("Also generate an image for each card")
        model_layout.addWidget(self.images_cb)

        layout.addWidget(model_section)
        layout.addSpacing(20)

        # Folder selection section
        folder_section = QFrame()
        folder_section.setFrameStyle(QFrame.StyledPanel)
        folder_layout = QVBoxLayout(folder_section)

        folder_title = QLabel("Folder")
        folder_title.setStyleSheet("font-weight: bold; font-size: 14px;")
        folder_layout.addWidget(folder_title)

        folder_selection_layout = QHBoxLayout()
        folder_selection_layout.addWidget(QLabel("Save to:"))
        self.folder_combo = QComboBox()
        self.folder_combo.setEditable(True)  # Allow typing new folder names
        self.folder_combo.setPlaceholderText("No folder, or type a new folder name...")
        folder_selection_layout.addWidget(self.folder_combo, 1)
        folder_layout.addLayout(folder_selection_layout)

        layout.addWidget(folder_section)
        layout.addSpacing(20)

        # Word input section
        input_section = QFrame()
        input_section.setFrameStyle(QFrame.StyledPanel)
        input_layout = QVBoxLayout(input_section)

        input_title = QLabel("Add Words")
        input_title.setStyleSheet("font-weight: bold; font-size: 14px;")
        input_layout.addWidget(input_title)

        input_layout.addWidget(QLabel("Enter Arabic or Turkish words (comma or line separated):"))

        disclaimer = QLabel("Gemini AI will generate the meaning, a sound-alike keyword and a memory story. "
                            "Words are processed one every 10-15 seconds to stay within rate limits.")
        disclaimer.setWordWrap(True)
        disclaimer.setStyleSheet("color: grey; font-size: 10px; font-style: italic;")
        input_layout.addWidget(disclaimer)

        self.words_input = QTextEdit()
        self.words_input.setPlaceholderText("كتاب, araba\nkalem")
        self.words_input.setFixedHeight(100)
        input_layout.addWidget(self.words_input)

        layout.addWidget(input_section)
        layout.addSpacing(20)

        # Progress section
        self.progress_bar = QProgressBar()
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        layout.addWidget(self.progress_bar)

        # Output log
        self.output_log = QTextEdit()
        self.output_log.setReadOnly(True)
        self.output_log.setFixedHeight(100)
        self.output_log.setLineWrapMode(QTextEdit.WidgetWidth)
        self.output_log.setVisible(False)
        layout.addWidget(self.output_log)

        # Buttons
        button_layout = QHBoxLayout()

        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self.clear_inputs)
        button_layout.addWidget(self.clear_btn)

        button_layout.addStretch()

        self.process_btn = QPushButton("Process Words with AI")
        self.process_btn.clicked.connect(self.process_words)
        self.process_btn.setMinimumHeight(40)
        self.process_btn.setStyleSheet("QPushButton { background-color: #0078d7; color: white; font-weight: bold; }")
        button_layout.addWidget(self.process_btn)

        layout.addLayout(button_layout)

        layout.addStretch()
        self.setLayout(layout)

        self.refresh_folders()
        self.words_input.textChanged.connect(self.update_ui_state)

    def load_saved_settings(self):
        """Load saved settings from config."""
        self.model_info.setText(f"Text model: {self.config.text_model}    Image model: {self.config.image_model}")
        if not self.config.get_api_key():
            self.model_info.setText(self.model_info.text() + "\nNo API key set. Add one in Preferences.")
        self.update_ui_state()

    def refresh_folders(self):
        """Refresh the folder list from the store, keeping the typed text."""
        current = self.folder_combo.currentText()
        self.folder_combo.blockSignals(True)
        self.folder_combo.clear()
        self.folder_combo.addItem("", None)
        for folder in self.store.folders:
            self.folder_combo.addItem(folder.name, folder.id)
        self.folder_combo.setEditText(current)
        self.folder_combo.blockSignals(False)

    def clear_inputs(self):
        """Clear all input fields."""
        self.words_input.clear()
        self.output_log.clear()
        self.progress_bar.setValue(0)

    def update_ui_state(self):
        """Update UI element states based on input."""
        running = bool(self.worker and self.worker.isRunning())
        has_words = bool(self.words_input.toPlainText().strip())
        has_api_key = bool(self.config.get_api_key())

        self.process_btn.setEnabled(running or (has_words and has_api_key))
        self.clear_btn.setEnabled(not running and (has_words or bool(self.output_log.toPlainText())))

    def process_words(self):
        """Process words using the Gemini API, or stop a running batch."""
        if self.worker and self.worker.isRunning():
            self.output_log.append("Stopping...")
            self.stop_worker()
            return

        words = split_words(self.words_input.toPlainText())
        if not words:
            QMessageBox.warning(self, "No Words", "Please enter some words to process.")
            return

        self.target_folder_id = self.resolve_folder()

        self.output_log.setVisible(True)
        self.progress_bar.setVisible(True)
        self.progress_bar.setMaximum(len(words))
        self.progress_bar.setValue(0)
        self.output_log.clear()
        self.output_log.append(f"Processing {len(words)} words...")
        self.added_count = 0

        client = GeminiClient(self.config.get_api_key(), self.config.text_model, self.config.image_model)
        self.worker = GenerationWorker(words, client, self.images_cb.isChecked())
        self.worker.progress_updated.connect(self.progress_bar.setValue)
        self.worker.word_processed.connect(self.on_word_processed)
        self.worker.finished_processing.connect(self.on_processing_finished)

        self.process_btn.setText("Stop Processing")
        self.worker.start()
        self.update_ui_state()

    def resolve_folder(self) -> Optional[str]:
        """Folder id for the combo text, creating the folder if it is new."""
        name = self.folder_combo.currentText().strip()
        if not name:
            return None
        for folder in self.store.folders:
            if folder.name == name:
                return folder.id
        return self.store.create_folder(name).id

    def on_word_processed(self, word: str, result: Dict, success: bool):
        """Handle a generated card on the GUI thread."""
        if not success:
            self.output_log.append(f"✗ Failed: {word} - {result.get('error', 'Unknown error')}")
            if result.get("kind") in ("quota", "missing_key") and self.worker:
                self.worker.stop()
            return

        card = Card(
            meaning=result["meaning"],
            word=result["word"],
            keyword=result["keyword"],
            story=result["story"],
            image_prompt=result.get("image_prompt", ""),
            image_ref=result.get("image_ref"),
            folder_id=self.target_folder_id,
        )
        self.store.add_card(card)
        self.added_count += 1
        self.output_log.append(f"✓ Added: {card.word} → {card.meaning}")

    def on_processing_finished(self, success_count: int, total_count: int):
        """Handle processing completion."""
        self.output_log.append(f"\nDone! Successfully processed {success_count}/{total_count} words.")
        self.process_btn.setText("Process Words with AI")

        # Clean up
        self.worker = None
        self.update_ui_state()

        if self.added_count > 0:
            self.words_input.clear()
            self.cards_added.emit(self.added_count)

    def stop_worker(self):
        """Stop a running batch and wait for the thread to exit."""
        if self.worker and self.worker.isRunning():
            self.worker.stop()
            self.worker.wait()
