"""Application entry point for the whatsalarm watcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
import signal
import sys
import threading
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Callable, Optional

from art import tprint
from playwright.async_api import Error as PlaywrightError
from rich.console import Console
from rich.markup import escape

from whatsalarm import settings
from whatsalarm.adapters.alarm import AlarmConfig, PygameAlarm
from whatsalarm.adapters.event_formatting import format_detection
from whatsalarm.adapters.playwright_host import PlaywrightObservationHost
from whatsalarm.browser import BrowserConfig, BrowserSession
from whatsalarm.core.config import DetectionConfig
from whatsalarm.core.matcher import KeywordMatcher, MatchOptions
from whatsalarm.core.models import DetectionEvent
from whatsalarm.core.normalizer import normalize
from whatsalarm.core.watcher import Watcher
from whatsalarm.login import wait_for_login

NAME = "WHATSALARM"
FONT = "tarty-1"

# Phone numbers inside WhatsApp ids, e.g. false_201001234567@c.us_3EB0...
_PHONE_IN_ID_RE = re.compile(r"\d{6,}(?=@(?:c\.us|s\.whatsapp\.net|g\.us|lid))")

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, redact_phone_numbers: bool, fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._redact = redact_phone_numbers

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self._redact:
            return message
        return _PHONE_IN_ID_RE.sub(lambda match: "***" + match.group(0)[-2:], message)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(bool(config.get("redact_phone_numbers", True)), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/whatsalarm.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _alarm_config() -> AlarmConfig:
    return AlarmConfig(
        sound_file=settings.ALARM_SOUND_FILE,
        loop=settings.ALARM_LOOP,
        force_volume=settings.ALARM_FORCE_VOLUME,
        target_volume=settings.ALARM_TARGET_VOLUME,
        fallback_on_volume_failure=settings.ALARM_FALLBACK_ON_VOLUME_FAILURE,
        auto_stop_ms=settings.ALARM_AUTO_STOP_MS,
    )


def _browser_config() -> BrowserConfig:
    return BrowserConfig(
        user_data_dir=settings.BROWSER_PROFILE_DIR,
        headless=settings.BROWSER_HEADLESS,
        timeout_ms=settings.BROWSER_TIMEOUT_MS,
        whatsapp_url=settings.WHATSAPP_URL,
    )


def _start_keyboard_listener(loop: asyncio.AbstractEventLoop, on_command: Callable[[str], None]) -> None:
    """Forward each stdin line to on_command on the event loop.

    A daemon thread is used because a blocked readline cannot be cancelled.
    """

    def _read() -> None:
        for line in sys.stdin:
            try:
                loop.call_soon_threadsafe(on_command, line.strip().lower())
            except RuntimeError:
                return

    threading.Thread(target=_read, name="whatsalarm-keyboard", daemon=True).start()


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, watcher: Watcher) -> None:
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, watcher.stop)
        except (NotImplementedError, RuntimeError):
            # Windows event loops: Ctrl+C surfaces as KeyboardInterrupt instead.
            pass


async def _watch(detection: DetectionConfig, alarm: PygameAlarm) -> int:
    session = BrowserSession(_browser_config())
    watcher: Optional[Watcher] = None
    try:
        page = await session.launch()
        await session.navigate()
        await wait_for_login(page, settings.BROWSER_TIMEOUT_MS, show_qr=settings.BROWSER_HEADLESS)

        watcher = Watcher(detection, PlaywrightObservationHost(page), alarm)
        page.on("close", lambda _page: watcher.stop())
        loop = asyncio.get_running_loop()
        _install_signal_handlers(loop, watcher)

        def _on_command(command: str) -> None:
            if command in {"", "s"}:
                alarm.stop()
            elif command == "q":
                LOGGER.info("Quit requested")
                watcher.stop()

        if not await watcher.initialize():
            LOGGER.error("Watcher failed to initialize")
            return 1
        _start_keyboard_listener(loop, _on_command)
        LOGGER.info("Monitoring for keywords. Enter or 's' stops the alarm, 'q' quits.")
        await watcher.run()
        return 0
    except TimeoutError as exc:
        LOGGER.error("%s", exc)
        return 1
    except PlaywrightError as exc:
        LOGGER.error("Browser error: %s", exc)
        return 1
    finally:
        if watcher is not None:
            await watcher.cleanup()
        await session.close()


def _run() -> int:
    _print_banner()
    _configure_logging()

    LOGGER.info("Starting whatsalarm")
    detection = settings.build_detection_config()
    LOGGER.info("%s keyword(s) loaded", len(detection.keywords))

    alarm = PygameAlarm(_alarm_config())
    if not alarm.initialize():
        LOGGER.warning("Continuing without audio, detections will only be logged")

    try:
        return asyncio.run(_watch(detection, alarm))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted")
        return 0
    finally:
        alarm.cleanup()


def _check(text: str) -> int:
    """Run the configured matcher against text without a browser."""

    detection = settings.build_detection_config()
    matcher = KeywordMatcher(
        detection.keywords,
        MatchOptions(case_sensitive=detection.case_sensitive, whole_word=detection.whole_word_match),
    )
    console = Console()
    console.print(f"[dim]Normalized:[/dim] {escape(normalize(text))}")
    keyword = matcher.find(text)
    if keyword is None:
        console.print("[yellow]No keyword matched[/yellow]")
        return 1
    event = DetectionEvent(
        keyword=keyword,
        text=text,
        chat_name="(check)",
        timestamp_iso=datetime.now().astimezone().isoformat(timespec="milliseconds"),
    )
    console.print(format_detection(event, mode="rich"))
    return 0


def _test_alarm(seconds: float) -> int:
    _configure_logging()
    alarm = PygameAlarm(_alarm_config())
    if not alarm.initialize():
        return 1
    try:
        alarm.start()
        time.sleep(max(seconds, 0))
    except KeyboardInterrupt:
        pass
    finally:
        alarm.cleanup()
    return 0


def _setup() -> int:
    _print_banner()
    from whatsalarm.frontend.app import ConfigPanelApp

    ConfigPanelApp().run()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="whatsalarm")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the watcher")
    subparsers.add_parser("config", help="Launch the config TUI")
    check_parser = subparsers.add_parser("check", help="Test a message against the configured keywords")
    check_parser.add_argument("text", help="Message text to test")
    alarm_parser = subparsers.add_parser("test-alarm", help="Play the alarm sound")
    alarm_parser.add_argument("--seconds", type=float, default=5.0, help="How long to play (default 5)")

    args = parser.parse_args(argv)
    if args.command == "config":
        return _setup()
    if args.command == "check":
        return _check(args.text)
    if args.command == "test-alarm":
        return _test_alarm(args.seconds)
    return _run()


if __name__ == "__main__":
    raise SystemExit(main())
