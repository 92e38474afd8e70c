"""Daily access log for connection, authentication, transfer and disconnect events.

Each call to :meth:`AccessLog.log_access` opens the day's file in append mode,
writes one line and closes it again. Failures never reach the caller: an
open failure is reported once on the diagnostic logger, a write failure is
dropped.
"""
import enum
import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

from .config import ACCESS_LOG_ROOT, APP_NAME
from .logging_config import configure_logging

logger = configure_logging()

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class Incoming:
    ip: str
    user: str
    method: str


@dataclass(frozen=True)
class ConnectResult:
    ip: str
    user: str
    method: str
    ok: bool
    msg: str


@dataclass(frozen=True)
class FileTransfer:
    ip: str
    user: str
    path: str
    success: bool


@dataclass(frozen=True)
class Disconnect:
    ip: str
    user: str
    reason: str


AccessEvent = Union[Incoming, ConnectResult, FileTransfer, Disconnect]

# kind token and field order per event type
EVENT_LAYOUT: Dict[Type, Tuple[str, Tuple[str, ...]]] = {
    Incoming: ("INCOMING", ("ip", "user", "method")),
    ConnectResult: ("CONNECT_RESULT", ("ip", "user", "method", "ok", "msg")),
    FileTransfer: ("FILE_TRANSFER", ("ip", "user", "path", "success")),
    Disconnect: ("DISCONNECT", ("ip", "user", "reason")),
}
EVENT_TYPES = {kind: cls for cls, (kind, _) in EVENT_LAYOUT.items()}
BOOL_FIELDS = {"ok", "success"}

_LINE_RE = re.compile(r"\[(?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\] (?P<kind>[A-Z_]+) (?P<rest>.*)")


def _render(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_line(timestamp: datetime, event: AccessEvent) -> str:
    """Render one access line, newline terminated. Values are not escaped."""
    kind, names = EVENT_LAYOUT[type(event)]
    tokens = " ".join(f"{name}={_render(getattr(event, name))}" for name in names)
    return f"[{timestamp.strftime(TIMESTAMP_FORMAT)}] {kind} {tokens}\n"


@dataclass(frozen=True)
class AccessRecord:
    timestamp: datetime
    event: AccessEvent

    @property
    def kind(self) -> str:
        return EVENT_LAYOUT[type(self.event)][0]

    def fields(self) -> Dict[str, Union[str, bool]]:
        return asdict(self.event)


def _fields_pattern(names: Tuple[str, ...]) -> "re.Pattern[str]":
    parts = [f"{re.escape(name)}=(?P<{name}>.*?)" for name in names[:-1]]
    parts.append(f"{re.escape(names[-1])}=(?P<{names[-1]}>.*)")
    return re.compile(" ".join(parts))


_FIELD_PATTERNS = {kind: _fields_pattern(names) for kind, names in EVENT_LAYOUT.values()}


def parse_line(line: str) -> AccessRecord:
    """Parse a line written by :func:`format_line` back into a record."""
    match = _LINE_RE.fullmatch(line.rstrip("\r\n"))
    if not match:
        raise ValueError(f"Not an access log line: {line!r}")
    kind = match.group("kind")
    if kind not in EVENT_TYPES:
        raise ValueError(f"Unknown access event kind: {kind}")
    fields = _FIELD_PATTERNS[kind].fullmatch(match.group("rest"))
    if not fields:
        raise ValueError(f"Malformed {kind} fields: {match.group('rest')!r}")
    values: Dict[str, Union[str, bool]] = {}
    for name, raw in fields.groupdict().items():
        if name in BOOL_FIELDS:
            if raw not in ("true", "false"):
                raise ValueError(f"Invalid boolean for {name}: {raw!r}")
            values[name] = raw == "true"
        else:
            values[name] = raw
    timestamp = datetime.strptime(match.group("ts"), TIMESTAMP_FORMAT)
    return AccessRecord(timestamp=timestamp, event=EVENT_TYPES[kind](**values))


class WriteStatus(enum.Enum):
    WRITTEN = "written"
    OPEN_FAILED = "open_failed"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class WriteResult:
    status: WriteStatus
    path: Path
    reason: Optional[str] = None


class AccessLog:
    """Append-only access log rooted at ``root``, one file per local calendar day."""

    def __init__(self, root: Path, app_name: str = APP_NAME, clock: Callable[[], datetime] = datetime.now):
        self.root = Path(root)
        self.app_name = app_name
        self.clock = clock

    @property
    def directory(self) -> Path:
        return self.root / self.app_name / "log" / "access_log"

    def path_for(self, day: date) -> Path:
        return self.directory / f"{self.app_name.lower()}_{day.strftime(DATE_FORMAT)}.log"

    def resolve_path(self, now: Optional[datetime] = None) -> Path:
        """Return the file for ``now`` (default: the clock), creating its directory."""
        if now is None:
            now = self.clock()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            # the open in write() reports it
            pass
        return self.path_for(now.date())

    def write(self, event: AccessEvent, now: Optional[datetime] = None) -> WriteResult:
        if now is None:
            now = self.clock()
        path = self.resolve_path(now)
        # lone surrogates (e.g. from surrogateescape file names) must not raise
        data = format_line(now, event).encode("utf-8", "backslashreplace")
        try:
            handle = open(path, "ab")
        except OSError as exc:
            return WriteResult(WriteStatus.OPEN_FAILED, path, str(exc))
        try:
            # buffered bytes reach the disk on close, so close failures count as write failures
            with handle:
                handle.write(data)
        except OSError:
            return WriteResult(WriteStatus.WRITE_FAILED, path)
        return WriteResult(WriteStatus.WRITTEN, path)

    def log_access(self, event: AccessEvent) -> None:
        """Record ``event``. Never raises."""
        result = self.write(event)
        if result.status is WriteStatus.OPEN_FAILED:
            logger.error("Failed to open access log file: %s", result.reason)

    def read(self, day: date) -> List[AccessRecord]:
        """Return the records logged on ``day`` in file order, skipping malformed lines."""
        path = self.path_for(day)
        if not path.exists():
            return []
        records: List[AccessRecord] = []
        with path.open("r", encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, start=1):
                try:
                    records.append(parse_line(line))
                except ValueError:
                    logger.warning("ACCESS_LOG_MALFORMED path=%s line=%s", path, lineno)
        return records


default_access_log = AccessLog(ACCESS_LOG_ROOT)


def get_access_log() -> AccessLog:
    """FastAPI dependency returning the server's access log."""
    return default_access_log


def log_access(event: AccessEvent) -> None:
    default_access_log.log_access(event)
