"""
Logging for the gateway.

Records land in `<LOG_DIR>/<YYYY-MM-DD>/<file>.log`. Application records are
split by area (chat, sessions, routing, upstream, app); uvicorn gets its own
access.log and server.log. Timestamps use the host's local time.
"""

import datetime
import logging
import shutil
from pathlib import Path
from typing import Callable, Dict, Optional, TextIO

from .settings import settings

_LOGGING_CONFIGURED = False

LOGGER_NAME = "completion_gateway"

# Path fragment -> area, first match wins.
_BUSINESS_BY_PATH = (
    ("/completion_gateway/api/", "chat"),
    ("/completion_gateway/services/completion_service.py", "chat"),
    ("/completion_gateway/services/conversation_service.py", "sessions"),
    ("/completion_gateway/routing/", "routing"),
    ("/completion_gateway/upstream.py", "upstream"),
)


def infer_log_business(record: logging.LogRecord) -> str:
    """
    Every module logs through the shared `completion_gateway` logger, so the
    area comes from the call-site path rather than the logger name.
    """
    name = record.name or ""
    if name.startswith("uvicorn.access"):
        return "access"
    if name.startswith("uvicorn"):
        return "server"

    path = (record.pathname or "").replace("\\", "/")
    for fragment, business in _BUSINESS_BY_PATH:
        if fragment in path:
            return business
    return "app"


class IsoTimeFormatter(logging.Formatter):
    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        dt = datetime.datetime.fromtimestamp(record.created).astimezone()
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds")


def _local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


class DailyFolderFileHandler(logging.Handler):
    """
    Writes to `<log_dir>/<YYYY-MM-DD>/<name>.log`.

    With `filename` set every record goes to that file; without it the file
    is chosen per record by `infer_log_business`. Only the newest
    `backup_days` date folders are kept (0 keeps everything).
    """

    def __init__(
        self,
        log_dir: Path,
        filename: Optional[str] = None,
        backup_days: int = 7,
        encoding: str = "utf-8",
        now_fn: Callable[[], datetime.datetime] = _local_now,
    ) -> None:
        super().__init__()
        self.log_dir = Path(log_dir)
        self.filename = filename
        self.backup_days = backup_days
        self.encoding = encoding
        self._now_fn = now_fn
        self._day: Optional[datetime.date] = None
        self._streams: Dict[str, TextIO] = {}
        self._roll_over()

    def _roll_over(self) -> None:
        today = self._now_fn().date()
        if today == self._day:
            return
        self._day = today
        self._close_streams()
        (self.log_dir / today.isoformat()).mkdir(parents=True, exist_ok=True)
        self._prune()

    def _prune(self) -> None:
        if self.backup_days <= 0:
            return
        dated = []
        for child in self.log_dir.iterdir():
            if not child.is_dir():
                continue
            try:
                dated.append((datetime.date.fromisoformat(child.name), child))
            except ValueError:
                continue
        dated.sort()
        for _, stale in dated[: -self.backup_days]:
            shutil.rmtree(stale, ignore_errors=True)

    def _stream(self, name: str) -> TextIO:
        stream = self._streams.get(name)
        if stream is None:
            safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in name)
            path = self.log_dir / self._day.isoformat() / safe
            stream = open(path, "a", encoding=self.encoding)
            self._streams[name] = stream
        return stream

    def _close_streams(self) -> None:
        for stream in self._streams.values():
            stream.close()
        self._streams.clear()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._roll_over()
            if not hasattr(record, "biz"):
                record.biz = infer_log_business(record)
            name = self.filename or f"{record.biz}.log"
            stream = self._stream(name)
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        try:
            self._close_streams()
        finally:
            super().close()


class BizFilter(logging.Filter):
    """
    Sets `record.biz` for the formatter: a fixed area, or the inferred one.
    """

    def __init__(self, biz: Optional[str] = None) -> None:
        super().__init__()
        self._biz = biz

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if self._biz is not None:
            record.biz = self._biz
        elif not hasattr(record, "biz"):
            record.biz = infer_log_business(record)
        return True


def _resolve_log_dir(value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    # completion_gateway/logging_config.py -> repo root
    return Path(__file__).resolve().parents[1] / path


def setup_logging() -> None:
    """
    Configure application and uvicorn logging. Safe to call more than once.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    log_dir = _resolve_log_dir(settings.log_dir)
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = IsoTimeFormatter("%(asctime)s [%(levelname)s] [%(biz)s] %(name)s - %(message)s")

    def file_handler(filename: Optional[str], biz_filter: BizFilter) -> DailyFolderFileHandler:
        handler = DailyFolderFileHandler(
            log_dir=log_dir, filename=filename, backup_days=settings.log_backup_days
        )
        handler.setFormatter(formatter)
        handler.addFilter(biz_filter)
        return handler

    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(level)
    app_logger.addHandler(
        file_handler(None if settings.log_split_by_business else "app.log", BizFilter())
    )

    access_logger = logging.getLogger("uvicorn.access")
    access_logger.setLevel(level)
    access_logger.addHandler(file_handler("access.log", BizFilter("access")))

    server_handler = file_handler("server.log", BizFilter("server"))
    # uvicorn.access propagates to uvicorn; keep it out of server.log.
    server_handler.addFilter(lambda record: not record.name.startswith("uvicorn.access"))
    uvicorn_logger = logging.getLogger("uvicorn")
    uvicorn_logger.setLevel(level)
    uvicorn_logger.addHandler(server_handler)

    # Console output for everything, via the root logger.
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        console.addFilter(BizFilter())
        root_logger.addHandler(console)

    _LOGGING_CONFIGURED = True


logger = logging.getLogger(LOGGER_NAME)
