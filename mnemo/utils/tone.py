"""Double-beep tone player for the review alarm."""

import logging
import math
import struct
import time
import wave
from pathlib import Path
from typing import List

from PySide6.QtCore import QObject, QTimer, QUrl, Qt
from PySide6.QtMultimedia import QSoundEffect

from ..engine.alarm import TonePlayer

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
FREQUENCY = 880.0
PEAK = 0.3
BEEP_OFFSETS = (0.0, 0.25)  # seconds, two beeps per pulse
BEEP_LENGTH = 0.2


def _envelope(t: float) -> float:
    """Fast linear attack to PEAK, then exponential decay to ~0.001 at 150 ms."""
    if t < 0.02:
        return PEAK * t / 0.02
    if t < 0.15:
        return PEAK * math.pow(0.001 / PEAK, (t - 0.02) / 0.13)
    return 0.0


def render_double_beep(path: Path) -> Path:
    """Write the double-beep as a mono 16-bit WAV and return its path."""
    total = int(SAMPLE_RATE * (BEEP_OFFSETS[-1] + BEEP_LENGTH))
    samples = [0.0] * total
    for offset in BEEP_OFFSETS:
        start = int(offset * SAMPLE_RATE)
        for i in range(int(BEEP_LENGTH * SAMPLE_RATE)):
            if start + i >= total:
                break
            t = i / SAMPLE_RATE
            samples[start + i] += _envelope(t) * math.sin(2 * math.pi * FREQUENCY * t)

    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(b"".join(
            struct.pack("<h", int(max(-1.0, min(1.0, s)) * 32767)) for s in samples
        ))
    return path


class QtTonePlayer(TonePlayer):
    """Plays the double-beep at monotonic times through QSoundEffect."""

    def __init__(self, cache_dir: Path, parent=None):
        self._owner = QObject(parent)
        self._pending: List[QTimer] = []
        self._effect = None
        try:
            wav_path = render_double_beep(Path(cache_dir) / "alarm.wav")
            self._effect = QSoundEffect(self._owner)
            self._effect.setSource(QUrl.fromLocalFile(str(wav_path)))
        except (OSError, RuntimeError) as e:
            logger.warning("Alarm tone unavailable: %s", e)

    def schedule(self, at: float) -> None:
        if self._effect is None:
            return
        delay_ms = max(0, int((at - time.monotonic()) * 1000))
        timer = QTimer(self._owner)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.PreciseTimer)
        timer.timeout.connect(lambda t=timer: self._play(t))
        self._pending.append(timer)
        timer.start(delay_ms)

    def cancel_all(self) -> None:
        for timer in self._pending:
            timer.stop()
            timer.deleteLater()
        self._pending.clear()
        if self._effect is not None:
            self._effect.stop()

    def _play(self, timer: QTimer):
        if timer in self._pending:
            self._pending.remove(timer)
            timer.deleteLater()
        self._effect.play()
