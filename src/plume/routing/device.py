"""Device classification from a User-Agent header.

Checked in priority order: desktop, then tablet, then generic mobile.
"""

import re

_MOBILE_RE = re.compile(r"Mobi|iPhone|iPod|Android|BlackBerry|IEMobile|Opera Mini|webOS", re.I)
_TABLET_RE = re.compile(r"iPad|Tablet|PlayBook|Silk|Kindle|Nexus (?:7|9|10)", re.I)
_DESKTOP_RE = re.compile(r"Windows NT|Macintosh|X11|CrOS|Linux x86_64", re.I)

DEVICES = ("pc", "ipad", "mobile", "unknown")


def classify_device(user_agent: str | None) -> str:
    """Map a User-Agent string to ``pc``, ``ipad``, ``mobile`` or ``unknown``."""
    if not user_agent:
        return "unknown"
    is_mobile = bool(_MOBILE_RE.search(user_agent))
    is_tablet = bool(_TABLET_RE.search(user_agent)) or (
        "Android" in user_agent and "Mobile" not in user_agent
    )
    if _DESKTOP_RE.search(user_agent) and not is_mobile and not is_tablet:
        return "pc"
    if is_tablet:
        return "ipad"
    if is_mobile:
        return "mobile"
    return "unknown"
