from __future__ import annotations

import re
from typing import Any, List, Optional


def parse_years(value: Any) -> Optional[int]:
    """Parse form input like '3', '3 years', '2.5', ' 10+ ' into whole years.

    Returns None for blank or unparsable inputs. Negative numbers are kept so
    the model can reject them with a proper message.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    s = str(value).strip().lower()
    if not s:
        return None
    m = re.match(r"^(-?[0-9]+(?:\.[0-9]+)?)\s*\+?\s*(?:yrs?|years?)?$", s)
    if not m:
        return None
    return int(float(m.group(1)))


def parse_list(value: Any) -> List[str]:
    """Split comma separated form input into trimmed, non-empty entries."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(",")
    return [s.strip() for s in items if s and s.strip()]
