from typing import Optional


class IcalFormatError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CalendarFetchError(Exception):
    def __init__(self, message: str, source: str, status_code: Optional[int] = None):
        self.message = message
        self.source = source
        self.status_code = status_code
        super().__init__(message)
