import logging
from typing import List, Protocol


class Diagnostics(Protocol):
    """Sink for user-facing warnings and progress notes raised during an export."""

    def warn(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class LoggingDiagnostics:
    """Forwards diagnostics to a standard logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger('tilemesh')

    def warn(self, message: str) -> None:
        self.logger.warning(message)

    def info(self, message: str) -> None:
        self.logger.info(message)


class CollectingDiagnostics(LoggingDiagnostics):
    """Keeps every message so a caller can show them after the export finishes."""

    def __init__(self, logger: logging.Logger | None = None):
        super().__init__(logger)
        self.warnings: List[str] = []
        self.messages: List[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        super().warn(message)

    def info(self, message: str) -> None:
        self.messages.append(message)
        super().info(message)


def get_diagnostics(diagnostics: Diagnostics | None) -> Diagnostics:
    return diagnostics if diagnostics is not None else LoggingDiagnostics()
