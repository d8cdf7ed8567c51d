"""Text-to-Speech for card review and voice preview, with edge-tts and caching."""

import asyncio
import hashlib
import logging
import os
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import edge_tts
from PySide6.QtCore import QObject, Signal, QThread, QTimer, QUrl
from PySide6.QtMultimedia import QMediaPlayer, QAudioOutput

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "ar-SA-HamedNeural"
MEANING_VOICE = "tr-TR-EmelNeural"
MEANING_PAUSE_MS = 2500


def clean_text(text: str) -> str:
    """Strip parenthesised pronunciation: "كتاب (Kitab)" -> "كتاب"."""
    return re.sub(r"\s*\(.*?\)", "", text or "").strip()


def filter_voices(voices: List[Dict], prefix: str = "ar") -> List[Dict]:
    """Keep voices whose locale starts with ``prefix`` or that look Arabic by name."""
    prefix = prefix.lower()
    matches = []
    for voice in voices:
        locale = (voice.get("Locale") or "").lower().replace("_", "-")
        name = (voice.get("FriendlyName") or voice.get("ShortName") or "").lower()
        if locale.startswith(prefix):
            matches.append(voice)
        elif prefix == "ar" and ("arabic" in name or re.search(r"[؀-ۿ]", name)):
            matches.append(voice)
    return matches


def list_voices(prefix: str = "ar") -> List[Dict]:
    """Fetch the edge-tts voice catalogue (network) and filter it.

    Returns an empty list when the catalogue cannot be reached.
    """
    try:
        voices = asyncio.run(edge_tts.list_voices())
    except Exception as e:
        logger.warning("Could not list voices: %s", e)
        return []
    return filter_voices(voices, prefix)


class TTSWorker(QThread):
    """Worker thread for TTS generation to avoid blocking UI."""

    audio_ready = Signal(str)  # file_path
    error_occurred = Signal(str)  # error_message

    def __init__(self, text: str, voice: str, cache_file: str):
        super().__init__()
        self.text = text
        self.voice = voice
        self.cache_file = cache_file

    def run(self):
        """Generate TTS audio in background thread."""
        try:
            asyncio.run(self._generate_tts())
            self.audio_ready.emit(self.cache_file)
        except Exception as e:
            self.error_occurred.emit(str(e))

    async def _generate_tts(self):
        communicate = edge_tts.Communicate(self.text, self.voice)
        await communicate.save(self.cache_file)


class VoiceListWorker(QThread):
    """Loads the voice catalogue off the GUI thread."""

    voices_loaded = Signal(list)

    def __init__(self, prefix: str = "ar"):
        super().__init__()
        self.prefix = prefix

    def run(self):
        self.voices_loaded.emit(list_voices(self.prefix))


class CardSpeaker(QObject):
    """Speaks card words (optionally preceded by their meaning).

    ``speak`` returns a cancel function; calling it stops playback and any
    pending pause between meaning and word.
    """

    audio_finished = Signal()

    def __init__(self, cache_dir: Path):
        super().__init__()

        self.cache_dir = Path(cache_dir) / "tts_cache"
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.media_player = QMediaPlayer()
        self.audio_output = QAudioOutput()
        self.media_player.setAudioOutput(self.audio_output)
        self.media_player.playbackStateChanged.connect(self._on_playback_state_changed)

        self.pause_timer = QTimer(self)
        self.pause_timer.setSingleShot(True)
        self.pause_timer.timeout.connect(self._play_next)

        self.tts_worker = None
        self._steps: List[Tuple[str, str]] = []
        self._playing = False
        self._generation = 0

    def speak(self, text: str, voice: Optional[str] = None,
              meaning: Optional[str] = None) -> Callable[[], None]:
        """Speak ``text`` with ``voice``; with ``meaning``, say that first and pause."""
        self.stop()
        self._generation += 1
        generation = self._generation

        word = clean_text(text)
        steps = []
        if meaning and meaning.strip():
            steps.append((meaning.strip(), MEANING_VOICE))
        if word:
            steps.append((word, voice or DEFAULT_VOICE))

        if steps:
            self._steps = steps
            self._play_next()

        def cancel():
            if generation == self._generation:
                self.stop()
                self.audio_finished.emit()

        return cancel

    def stop(self):
        """Stop current audio playback and drop pending steps."""
        self._steps = []
        self.pause_timer.stop()
        self._playing = False
        self.media_player.stop()

    def _play_next(self):
        if not self._steps:
            return
        text, voice = self._steps.pop(0)

        cache_key = hashlib.md5(f"{text}_{voice}".encode()).hexdigest()
        cache_file = self.cache_dir / f"{cache_key}.mp3"

        if cache_file.exists():
            self._play_audio(str(cache_file))
        else:
            self._generate_and_play(text, voice, str(cache_file))

    def _generate_and_play(self, text: str, voice: str, cache_file: str):
        if self.tts_worker and self.tts_worker.isRunning():
            self.tts_worker.quit()
            self.tts_worker.wait()

        generation = self._generation
        self.tts_worker = TTSWorker(text, voice, cache_file)
        self.tts_worker.audio_ready.connect(
            lambda path: self._play_audio(path) if generation == self._generation else None
        )
        self.tts_worker.error_occurred.connect(self._on_tts_error)
        self.tts_worker.start()

    def _play_audio(self, file_path: str):
        if not os.path.exists(file_path):
            logger.warning("Audio file not found: %s", file_path)
            self.audio_finished.emit()
            return
        self.media_player.setSource(QUrl.fromLocalFile(file_path))
        self.media_player.play()
        self._playing = True

    def _on_playback_state_changed(self, state):
        if state != QMediaPlayer.PlaybackState.StoppedState or not self._playing:
            return
        self._playing = False
        if self._steps:
            self.pause_timer.start(MEANING_PAUSE_MS)
        else:
            self.audio_finished.emit()

    def _on_tts_error(self, error_msg: str):
        logger.warning("TTS error: %s", error_msg)
        # Carry on with the word even if the meaning failed
        if self._steps:
            self.pause_timer.start(500)
        else:
            self.audio_finished.emit()

