"""
Custom logging configuration for the task management backend.
Provides clear, presentable console logs with per-component icons,
plus a decorator that traces workflow operations with timing.
"""
import logging
import sys
import time
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Optional


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for terminal formatting."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_CYAN = "\033[96m"


# Icons per component (last segment of the logger name)
COMPONENT_ICONS = {
    "task_store": "📋",
    "comment_store": "💬",
    "invitation_store": "✉️",
    "user_store": "👤",
    "identity": "🔐",
    "accounts": "🔑",
    "notifier": "📨",
    "email_client": "📧",
    "admin_workflow": "🛠️",
    "employee_workflow": "🧑‍💻",
    "db": "🗄️",
    "main": "🚀",
    "default": "▶️",
}


class WorkflowFormatter(logging.Formatter):
    """
    Custom formatter that provides clean, presentable log output.
    """

    LEVEL_FORMATS = {
        logging.DEBUG: (Colors.DIM, "DEBUG"),
        logging.INFO: (Colors.BRIGHT_CYAN, "INFO "),
        logging.WARNING: (Colors.BRIGHT_YELLOW, "WARN "),
        logging.ERROR: (Colors.BRIGHT_RED, "ERROR"),
        logging.CRITICAL: (Colors.BOLD + Colors.BRIGHT_RED, "CRIT "),
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        color, level_text = self.LEVEL_FORMATS.get(
            record.levelno,
            (Colors.WHITE, record.levelname[:5])
        )

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        module = record.name.split(".")[-1] if record.name else "root"
        icon = COMPONENT_ICONS.get(module, COMPONENT_ICONS["default"])

        if self.use_colors:
            level_str = f"{color}{level_text}{Colors.RESET}"
            time_str = f"{Colors.DIM}{timestamp}{Colors.RESET}"
            module_str = f"{Colors.BRIGHT_BLUE}{module:20}{Colors.RESET}"
            formatted = f"{time_str} │ {level_str} │ {icon} {module_str} │ {record.getMessage()}"
        else:
            # Plain text output (for file logging)
            formatted = f"{timestamp} | {level_text} | {icon} {module:20} | {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> None:
    """
    Configure logging for the task management backend.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        use_colors: Whether to use ANSI colors in console output
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(WorkflowFormatter(use_colors=use_colors))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(WorkflowFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_operation(operation_name: Optional[str] = None):
    """
    Decorator that logs entry, exit and duration of a workflow operation.

    Usage:
        @log_operation("create_task")
        def create_task(ctx, ...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        name = operation_name or func.__name__
        op_logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()
            op_logger.debug(f"▶ {name}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                op_logger.info(f"✗ {name} failed after {duration_ms:.0f}ms: {e}")
                raise
            duration_ms = (time.time() - start_time) * 1000
            op_logger.debug(f"◀ {name} ({duration_ms:.0f}ms)")
            return result

        return wrapper
    return decorator
