from typing import Optional


class PaymentsEngineError(Exception):
    """Base class for errors that terminate a run."""


class InputSourceError(PaymentsEngineError):
    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Cannot read transactions from {filepath}: {reason}")


class InputFormatError(PaymentsEngineError):
    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        super().__init__(message)
