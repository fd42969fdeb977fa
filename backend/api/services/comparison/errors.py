"""Exceptions raised by comparison session commands."""


class ComparisonError(Exception):
    """Base class for rejected comparison commands."""


class SelectionFullError(ComparisonError):
    """The selection already holds the maximum number of streams."""

    def __init__(self, limit: int):
        super().__init__(f"At most {limit} streams can be compared")
        self.limit = limit


class DuplicateStreamError(ComparisonError):
    def __init__(self, stream_id: int):
        super().__init__(f"Stream {stream_id} is already selected")
        self.stream_id = stream_id


class StreamNotSelectedError(ComparisonError):
    def __init__(self, stream_id: int):
        super().__init__(f"Stream {stream_id} is not selected")
        self.stream_id = stream_id
