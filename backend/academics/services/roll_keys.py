import re
from typing import Optional

# ASCII digits anchored at the very end of the string (\Z, not $, so a
# trailing newline does not count as the end).
_TRAILING_DIGITS = re.compile(r'([0-9]+)\Z')
MAX_SEQUENCE_DIGITS = 18


def extract_sequence(value) -> Optional[int]:
    """Return the integer formed by the trailing digit run of `value`.

    "CS2401" -> 2401, "045" -> 45. Returns None when the value is empty or
    does not end in a digit: "RBT21CS045X", "CS2401 " and PRNs carrying a
    checksum letter such as "72200001K" do not match. Callers that want the
    digits before such a suffix must strip it themselves.
    """
    if value is None:
        return None
    match = _TRAILING_DIGITS.search(str(value))
    if not match:
        return None
    # ranges compare modulo 1000; the cap keeps int() under the digit limit
    return int(match.group(1)[-MAX_SEQUENCE_DIGITS:])
