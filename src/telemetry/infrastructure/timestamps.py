"""
Raw timestamp normalisation.
"""
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..domain.protocols import InstantParser
from ...common.exceptions import ConfigurationError, ParseError

DEFAULT_FORMAT = "%m/%d/%Y %I:%M:%S %p"
DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_SUFFIX_LENGTH = 6

class TimestampNormalizer(InstantParser):
    """
    Turns strings like "03/12/2019 04:00:04 PM -0800" into timezone-aware instants.

    The trailing offset suffix has a known fixed length and is discarded; the
    remainder is parsed with a fixed format and the configured named zone is
    attached to the wall-clock time.
    """
    def __init__(
        self,
        suffix_length: int = DEFAULT_SUFFIX_LENGTH,
        fmt: str = DEFAULT_FORMAT,
        timezone: str = DEFAULT_TIMEZONE
    ):
        if suffix_length < 0:
            raise ConfigurationError("suffix_length must be non-negative")
        try:
            self.tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown timezone: {timezone}") from e
        self.suffix_length = suffix_length
        self.fmt = fmt

    def strip_suffix(self, raw: str) -> str:
        text = raw.strip()
        if self.suffix_length:
            text = text[:-self.suffix_length]
        return text.strip()

    def parse(self, raw: str) -> datetime:
        if not isinstance(raw, str):
            raise ParseError(f"Timestamp is not a string: {raw!r}")
        text = self.strip_suffix(raw)
        try:
            wall_clock = datetime.strptime(text, self.fmt)
        except ValueError as e:
            raise ParseError(f"Malformed timestamp {raw!r}: {e}") from e
        return wall_clock.replace(tzinfo=self.tz)

    def parse_optional(self, raw: Optional[str]) -> Optional[datetime]:
        """Parses a value that may legitimately be absent (None, NaN or empty)."""
        # raw != raw catches the float NaN pandas uses for missing cells
        if raw is None or raw != raw or (isinstance(raw, str) and not raw.strip()):
            return None
        return self.parse(raw)
