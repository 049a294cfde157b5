"""Analysis logging and Windows-safe terminal output.

AnalysisLogger writes one log file per analyzed repository through loguru.
The terminal helpers replace Unicode icons with ASCII on consoles that
cannot encode UTF-8.
"""
import json
import locale
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse
from loguru import logger


# Unicode to ASCII icon mapping for Windows compatibility
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '•': '*',
    '…': '...',
    '🧹': '[sweep]',
    '📊': '[stats]',
    '🗄': '[db]',
}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "[{time:YYYY-MM-DD HH:mm:ss.SSS}] {level}: {message}"


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stdout, 'encoding') and sys.stdout.encoding:
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (ValueError, LookupError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding() in ('utf-8', 'utf8', 'utf_8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text


def setup_logging(log_level: str = "INFO"):
    """Route loguru's console output to stderr at the given level.

    Call before creating AnalysisLogger instances: it resets every sink.
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=CONSOLE_FORMAT, colorize=True)
    return logger


def extract_repo_name(repo: str) -> str:
    """Derive a log-file-safe repository name from a URL or local path.

    Args:
        repo: Repository URL (https://github.com/owner/name.git) or path

    Returns:
        Repository name for the log file
    """
    parsed = urlparse(repo)
    if parsed.scheme and parsed.netloc:
        parts = [part for part in parsed.path.split('/') if part]
        if len(parts) >= 2:
            return parts[1].replace('.git', '')
        return re.sub(r'[^a-zA-Z0-9]', '-', repo)

    name = Path(repo).resolve().name
    return name or re.sub(r'[^a-zA-Z0-9]', '-', repo)


class AnalysisLogger:
    """Per-repository analysis log backed by loguru.

    Entries look like ``[timestamp] LEVEL: message | Context: {...}``.
    Logging is observational only; callers never branch on it.
    """

    def __init__(self, repo: str, log_dir: str | Path = "log", write_file: bool = True):
        """Initialize logging for one repository.

        Args:
            repo: Repository URL or path the log file is named after
            log_dir: Directory for log files
            write_file: Attach a file sink (False keeps console output only)
        """
        self.repo_name = extract_repo_name(repo)
        self.log_dir = Path(log_dir)
        self.log_path = self.log_dir / f"{self.repo_name}-analysis.log"
        self._logger = logger.bind(analysis_log=str(self.log_path))
        self._sink_id = None

        if write_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            sink_key = str(self.log_path)
            self._sink_id = logger.add(
                sink_key,
                level="INFO",
                format=FILE_FORMAT,
                encoding="utf-8",
                filter=lambda record: record["extra"].get("analysis_log") == sink_key,
            )

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None):
        self._write("INFO", message, context)

    def log_error(self, message: str, context: Optional[Dict[str, Any]] = None):
        self._write("ERROR", message, context)

    def get_log_path(self) -> str:
        return str(self.log_path)

    def log_analysis_start(self, repo: str, repo_path: str):
        self.log_info('Analysis started', {
            'repositoryUrl': repo,
            'repositoryPath': repo_path,
        })

    def log_analysis_complete(self, summary: Dict[str, Any]):
        self.log_info('Analysis completed', summary)

    def close(self):
        """Detach the file sink."""
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _write(self, level: str, message: str, context: Optional[Dict[str, Any]]):
        context_str = f" | Context: {json.dumps(context, default=str)}" if context else ""
        # No positional args: loguru leaves braces in the message untouched
        self._logger.log(level, f"{message}{context_str}")
