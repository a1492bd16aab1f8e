import re
from typing import Dict, List, Optional

# KEY[;param=value[;...]]:VALUE, parameter values may be quoted and contain ':'
PROPERTY_LINE = re.compile(
    r'^(?P<key>[^;:\s][^;:]*)(?P<params>(?:;(?:"[^"]*"|[^";:])*)*):(?P<value>.*)$'
)

EVENT_BEGIN = "BEGIN:VEVENT"
EVENT_END = "END:VEVENT"


def normalize_newlines(text: str) -> str:
    """
    Strips a leading byte-order mark and folds CRLF / CR line endings into LF.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_property_line(line: str) -> Optional[tuple]:
    """
    Splits a content line into (key, value), discarding any parameters.
    Returns None when the line is not a property line.
    """
    match = PROPERTY_LINE.match(line)
    if not match:
        return None
    return match.group("key"), match.group("value")


def split_events(text: str) -> List[Dict[str, str]]:
    """
    Splits raw ICS text into one key -> value mapping per VEVENT block.

    - Folded lines (leading space or tab) are appended to the value of the
      last property seen in the current event.
    - Properties outside an event, or inside a component nested in one
      (VALARM and friends), are ignored.
    - An event without a matching END:VEVENT is dropped.
    - Lines that don't look like KEY:VALUE are skipped.
    """

    events = []
    current = None
    last_key = None
    depth = 0

    for line in normalize_newlines(text).split("\n"):
        marker = line.rstrip().upper()

        if marker == EVENT_BEGIN:
            # A BEGIN inside an open event abandons the unterminated one
            current = {}
            last_key = None
            depth = 0
            continue

        if current is None:
            continue

        if marker == EVENT_END and depth == 0:
            events.append(current)
            current = None
            last_key = None
            continue

        if line[:1] in (" ", "\t"):
            if depth == 0 and last_key is not None:
                current[last_key] += line[1:]
            continue

        if marker.startswith("BEGIN:"):
            depth += 1
            last_key = None
            continue
        if marker.startswith("END:"):
            depth = max(depth - 1, 0)
            last_key = None
            continue
        if depth:
            continue

        parsed = parse_property_line(line)
        if parsed is None:
            continue

        key, value = parsed
        current[key] = value
        last_key = key

    return events
