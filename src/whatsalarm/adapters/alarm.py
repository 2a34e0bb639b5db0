"""Looping audio alarm backed by pygame.mixer."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame

from whatsalarm.adapters.event_formatting import format_detection
from whatsalarm.adapters.volume import clamp_percent, set_system_volume
from whatsalarm.core.models import DetectionEvent

LOGGER = logging.getLogger(__name__)

VolumeSetter = Callable[[int], bool]


@dataclass(frozen=True)
class AlarmConfig:
    sound_file: str
    loop: bool = True
    force_volume: bool = True
    target_volume: int = 100
    fallback_on_volume_failure: bool = True
    # 0 keeps ringing until stopped.
    auto_stop_ms: int = 0


class PygameAlarm:
    """AlarmPort implementation playing a sound file until stopped.

    The mixer module and the volume setter are injectable so the playback
    state machine can be exercised without an audio device.
    """

    def __init__(
        self,
        config: AlarmConfig,
        volume_setter: VolumeSetter = set_system_volume,
        mixer: Any = None,
    ) -> None:
        self._config = config
        self._volume_setter = volume_setter
        self._mixer = mixer if mixer is not None else pygame.mixer
        self._lock = threading.Lock()
        self._ready = False
        self._playing = False
        # Set while a start waits for the volume command to finish.
        self._pending_start = False
        self._auto_stop: Optional[threading.Timer] = None

    @property
    def is_playing(self) -> bool:
        if self._playing and not self._config.loop and not self._mixer.music.get_busy():
            self._playing = False
        return self._playing

    def initialize(self) -> bool:
        path = self._config.sound_file
        if not os.path.isfile(path):
            LOGGER.warning("Alarm audio file not found: %s (add an MP3/WAV file there)", path)
            return False
        try:
            self._mixer.init()
            self._mixer.music.load(path)
        except pygame.error as exc:
            LOGGER.warning("Audio output unavailable, alarm disabled: %s", exc)
            return False
        self._ready = True
        LOGGER.info("Alarm ready (%s)", os.path.basename(path))
        return True

    def start(self) -> None:
        """Start playback without blocking the caller on volume commands."""

        with self._lock:
            if self._playing or self._pending_start:
                LOGGER.info("Alarm already playing")
                return
            if not self._ready:
                LOGGER.warning("Alarm triggered but audio is not initialized")
                return
            if not self._config.force_volume:
                self._play_locked()
                return
            target = clamp_percent(self._config.target_volume)
            if self._config.fallback_on_volume_failure:
                # Play right away; the volume command catches up.
                self._spawn(self._volume_setter, target)
                self._play_locked()
                return
            self._pending_start = True
            self._spawn(self._start_after_volume, target)

    def _spawn(self, target: Callable[[int], Any], percent: int) -> None:
        threading.Thread(target=target, args=(percent,), name="whatsalarm-volume", daemon=True).start()

    def _start_after_volume(self, percent: int) -> None:
        applied = self._volume_setter(percent)
        with self._lock:
            if not self._pending_start:
                # stop() came first.
                return
            self._pending_start = False
            if not applied:
                LOGGER.error("Failed to set system volume and fallback is disabled, alarm not started")
                return
            self._play_locked()

    def _play_locked(self) -> None:
        try:
            self._mixer.music.set_volume(1.0)
            self._mixer.music.play(loops=-1 if self._config.loop else 0)
        except pygame.error as exc:
            LOGGER.warning("Alarm playback failed: %s", exc)
            return
        self._playing = True
        LOGGER.warning("ALARM TRIGGERED, press Enter or 's' to stop")
        if self._config.auto_stop_ms > 0:
            self._auto_stop = threading.Timer(self._config.auto_stop_ms / 1000, self.stop)
            self._auto_stop.daemon = True
            self._auto_stop.start()

    def stop(self) -> None:
        with self._lock:
            self._pending_start = False
            if self._auto_stop is not None:
                self._auto_stop.cancel()
                self._auto_stop = None
            if not self._playing:
                LOGGER.debug("Alarm not playing")
                return
            self._playing = False
            try:
                self._mixer.music.stop()
            except pygame.error:
                LOGGER.debug("Mixer refused to stop", exc_info=True)
            LOGGER.info("Alarm stopped")

    def cleanup(self) -> None:
        self.stop()
        if self._ready:
            self._ready = False
            self._mixer.quit()

    def status(self) -> Dict[str, Any]:
        return {
            "is_playing": self.is_playing,
            "ready": self._ready,
            "sound_file": self._config.sound_file,
            "loop": self._config.loop,
            "force_volume": self._config.force_volume,
            "target_volume": clamp_percent(self._config.target_volume),
        }

    def on_detection(self, event: DetectionEvent) -> None:
        LOGGER.warning("\n%s", format_detection(event))
        self.start()
