"""Console logging utilities for chip8vm.

A small levelled logger used by the machine and the headless runner. Messages
go to stdout with an elapsed-time prefix and, on a tty, coloured level tags.
"""

import sys
import time

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConsoleLogger:
    """Flexible console logger with level filtering and formatting."""

    def __init__(
        self,
        name: str = "chip8vm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = (
            use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {level: rank for rank, level in enumerate(LOG_LEVELS)}
        if self.log_level not in self.level_order:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(self.level_order.keys())}"
            )

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order[self.log_level]

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def set_level(self, log_level: str):
        """Change the minimum level that gets printed."""
        if log_level.upper() not in self.level_order:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(self.level_order.keys())}"
            )
        self.log_level = log_level.upper()

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)

    def fault(self, error: Exception):
        """Log an interpreter fault with its kind, opcode and PC when known."""
        self.error(describe_fault(error))


def describe_fault(error: Exception) -> str:
    """One-line diagnostic for a fault: kind, opcode and PC where they apply."""
    parts = [type(error).__name__]
    opcode = getattr(error, "opcode", None)
    if opcode is not None:
        parts.append(f"opcode=0x{opcode:04X}")
    pc = getattr(error, "pc", None)
    if pc is not None:
        parts.append(f"pc=0x{pc:04X}")
    return f"{' '.join(parts)}: {error}"


def quiet_logger(name: str = "chip8vm") -> ConsoleLogger:
    """Logger that only reports warnings and worse, used when none is supplied."""
    return ConsoleLogger(name=name, log_level="WARNING", show_timestamps=False)
