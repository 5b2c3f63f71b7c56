# ============================================================================
# src/thermal_log_ocr/utils/text_normalizer.py
# ============================================================================
"""
Text Normalization Utilities

Cleans up OCR text from a photographed hourly log sheet:
- Normalizes whitespace while keeping line structure
- Fixes glyph confusions (O/0, I/l/|/1) inside hour labels only
- Rewrites "02.00", "02-00" and "02 00" header labels to "02:00"
- Replaces characters that carry no log content

Every step maps characters one to one unless layout preservation is
turned off, so offsets in the normalized text line up with the source.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

GLYPH_CORRECTIONS = str.maketrans({
    "O": "0",
    "o": "0",
    "I": "1",
    "l": "1",
    "|": "1",
})

_GLYPH = r"[0-9OoIl|]"

# "02:00", "2:00", "O2:OO"; recognized anywhere
COLON_TIME_PATTERN = re.compile(
    rf"(?<![\w:.])({_GLYPH}{{1,2}}):({_GLYPH}{{2}})(?![\w:])"
)

# "02.00", "02-00", "02 00"; only trusted on header lines
SEPARATED_TIME_PATTERN = re.compile(
    rf"(?<![\w:.\-])({_GLYPH}{{2}})([.\-]| )({_GLYPH}{{2}})(?![\w:.\-])"
)

# "0200"; only trusted on header lines of sheets with known hour labels
DIGIT_RUN_TIME_PATTERN = re.compile(
    rf"(?<![\w:.\-])({_GLYPH}{{2}})({_GLYPH}{{2}})(?![\w:.\-])"
)

INVALID_CHARS_PATTERN = re.compile(r"[^\w\s:.\-,]")

CLEAN_LABEL_PATTERN = re.compile(r"\d{2}:\d{2}")


@dataclass(frozen=True)
class HourToken:
    """An hour label found in one line of text."""
    start: int
    end: int
    text: str
    label: str   # normalized HH:MM
    form: str    # "colon", "separated" or "digits"

    @property
    def minute(self) -> str:
        return self.label[3:]

    @property
    def hour(self) -> str:
        return self.label[:2]


def fix_glyphs(text: str) -> str:
    """Map OCR glyph confusions to digits."""
    return text.translate(GLYPH_CORRECTIONS)


def _to_label(hour_text: str, minute_text: str) -> Optional[str]:
    raw = hour_text + minute_text
    if not any(ch.isdigit() for ch in raw):
        return None

    hour_text = fix_glyphs(hour_text)
    minute_text = fix_glyphs(minute_text)
    if not (hour_text.isdigit() and minute_text.isdigit()):
        return None

    hour = int(hour_text)
    minute = int(minute_text)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_hour_label(text: Optional[str]) -> Optional[str]:
    """
    Normalize an hour label to HH:MM.

    Examples:
        "2:00" -> "02:00"
        "O2:OO" -> "02:00"
        "0200" -> "02:00"
        "25:00" -> None

    Args:
        text: Label as written or recognized

    Returns:
        "HH:MM" or None when the text is not a valid hour label
    """
    if not text:
        return None
    candidate = text.strip()

    for pattern in (COLON_TIME_PATTERN, SEPARATED_TIME_PATTERN, DIGIT_RUN_TIME_PATTERN):
        match = pattern.fullmatch(candidate)
        if match:
            return _to_label(match.group(1), match.group(match.lastindex))
    return None


def find_hour_tokens(line: str, allow_digit_runs: bool = False) -> List[HourToken]:
    """
    Find every valid hour label in a line, in reading order.

    Colon labels are found first; separated and digit-run labels are only
    taken from text no earlier token already claimed.

    Args:
        line: One line of text
        allow_digit_runs: Also accept "HHMM" runs

    Returns:
        List of HourToken sorted by start offset
    """
    tokens: List[HourToken] = []
    claimed = []

    def _free(start: int, end: int) -> bool:
        return all(end <= s or start >= e for s, e in claimed)

    searches = [(COLON_TIME_PATTERN, "colon"), (SEPARATED_TIME_PATTERN, "separated")]
    if allow_digit_runs:
        searches.append((DIGIT_RUN_TIME_PATTERN, "digits"))

    for pattern, form in searches:
        for match in pattern.finditer(line):
            if not _free(match.start(), match.end()):
                continue
            label = _to_label(match.group(1), match.group(match.lastindex))
            if label is None:
                continue
            tokens.append(HourToken(match.start(), match.end(), match.group(0), label, form))
            claimed.append((match.start(), match.end()))

    tokens.sort(key=lambda t: t.start)
    return tokens


def is_header_line(line: str, allow_digit_runs: bool = False) -> bool:
    """
    Whether a line looks like a row of hour headers.

    A header line holds at least two hour labels that share the same
    minute and name distinct hours ("00:00 01:00 02:00").
    """
    tokens = find_hour_tokens(line, allow_digit_runs)
    if len(tokens) < 2:
        return False
    minutes = {t.minute for t in tokens}
    hours = [t.hour for t in tokens]
    return len(minutes) == 1 and len(set(hours)) == len(hours)


def is_clean_label(text: str) -> bool:
    return CLEAN_LABEL_PATTERN.fullmatch(text) is not None


def normalize_whitespace(line: str, preserve_layout: bool = True) -> str:
    """
    Turn tabs and other whitespace into plain spaces.

    With preserve_layout the mapping is one to one so columns stay aligned;
    without it runs of spaces collapse to one and the line is trimmed.
    """
    line = re.sub(r"\s", " ", line)
    if not preserve_layout:
        line = re.sub(r" {2,}", " ", line).strip()
    return line


def normalize_time_tokens(line: str, allow_digit_runs: bool = False) -> str:
    """Glyph-fix hour labels and rewrite header separators to colons."""
    header = is_header_line(line, allow_digit_runs)
    chars = list(line)

    for token in find_hour_tokens(line, allow_digit_runs):
        if token.form == "colon":
            replacement = fix_glyphs(token.text)
        elif token.form == "separated" and header:
            replacement = token.label
        else:
            continue
        chars[token.start:token.end] = list(replacement)

    return "".join(chars)


def normalize_ocr_text(
    text: Optional[str],
    preserve_layout: bool = True,
    allow_digit_runs: bool = False,
) -> str:
    """
    Normalize raw OCR text for column location and field extraction.

    Steps, per line:
    1. whitespace to plain spaces (runs kept when preserve_layout)
    2. glyph fixes inside hour labels, separators to colons on header lines
    3. characters outside [word, space, : . - ,] replaced by a space

    Line breaks are always kept.

    Args:
        text: Raw OCR text
        preserve_layout: Keep horizontal offsets unchanged
        allow_digit_runs: Treat "HHMM" runs as hour labels on header lines

    Returns:
        Normalized text
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    lines = []
    for line in text.split("\n"):
        line = normalize_whitespace(line, preserve_layout)
        line = normalize_time_tokens(line, allow_digit_runs)
        line = INVALID_CHARS_PATTERN.sub(" ", line)
        lines.append(line)

    return "\n".join(lines)
