"""
Query Keywords - Deterministic text scanning shared by every model-free path.

The classifier's keyword fallback and the deterministic synthesis rules both
read the raw query through these helpers, so the offline path and the
normalizer agree on what a query "mentions".

Matching is on word boundaries: "whatsapp" must not count as "what",
and "save" must not match inside "saver" unless listed.
"""

import math
import re
from typing import Dict, Iterable, List, Optional, Set

from powerguard.ai.intent.schemas import Duration, TimePeriod, MB_PER_GB


# ---------------------------------------------------------------------------
# VOCABULARY
# ---------------------------------------------------------------------------

# Substring match on purpose: "alerts", "notifying" all count
ALERT_TRIGGERS = ("notify", "alert")

PREDICTIVE_PHRASES = ("can i", "will i", "enough", "do i have", "is my battery")
INFORMATION_PHRASES = ("show", "list", "which", "what", "how much")
OPTIMIZATION_PHRASES = ("optimize", "optimise", "optimization", "save", "saving", "preserve", "extend")
WARNING_PHRASES = ("warn", "warning")

BATTERY_WORDS = ("battery", "charge", "power")
DATA_WORDS = ("data",)

CONTEXT_WORDS = {
    "background": "background",
    "traveling": "traveling",
    "travelling": "traveling",
    "trip": "traveling",
    "commute": "commute",
    "gaming": "gaming",
    "work": "work",
}

NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}

# Well-known apps, used when no snapshot is at hand
KNOWN_APP_PACKAGES: Dict[str, str] = {
    "WhatsApp": "com.whatsapp",
    "YouTube": "com.google.android.youtube",
    "Netflix": "com.netflix.mediaclient",
    "Spotify": "com.spotify.music",
    "Google Maps": "com.google.android.apps.maps",
    "Maps": "com.google.android.apps.maps",
    "Instagram": "com.instagram.android",
    "Facebook": "com.facebook.katana",
    "Messenger": "com.facebook.orca",
    "Chrome": "com.android.chrome",
    "Gmail": "com.google.android.gm",
    "TikTok": "com.zhiliaoapp.musically",
    "Twitter": "com.twitter.android",
    "Zoom": "us.zoom.videomeetings",
}

KNOWN_APP_CATEGORIES: Dict[str, str] = {
    "Netflix": "streaming",
    "YouTube": "streaming",
    "TikTok": "social",
    "Instagram": "social",
    "Facebook": "social",
    "Twitter": "social",
    "Spotify": "music",
    "Maps": "navigation",
    "Google Maps": "navigation",
    "WhatsApp": "messaging",
    "Messenger": "messaging",
    "Gmail": "email",
    "Zoom": "video_calls",
    "Chrome": "browser",
}


# ---------------------------------------------------------------------------
# PATTERNS
# ---------------------------------------------------------------------------

BATTERY_PERCENT_PATTERN = re.compile(r"(\d+)\s*%")
DATA_GB_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*gb\b", re.IGNORECASE)
DATA_MB_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*mb\b", re.IGNORECASE)
TOP_N_PATTERN = re.compile(r"\btop\s+(\d+|" + "|".join(NUMBER_WORDS) + r")\b", re.IGNORECASE)
DURATION_PATTERN = re.compile(
    r"(\d+)\s*(minutes?|mins?|hours?|hrs?|days?)\b", re.IGNORECASE
)
PERIOD_PATTERN = re.compile(r"\b(?:last|past)\s+(\d+)\s+(hour|day|week|month)s?\b", re.IGNORECASE)
KEEP_RUNNING_PATTERN = re.compile(
    r"\bkeep\s+(.+?)\s+(?:running|alive|active|working|on)\b", re.IGNORECASE
)
TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


# ---------------------------------------------------------------------------
# MATCHING
# ---------------------------------------------------------------------------

def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-word, case-insensitive phrase match."""
    return re.search(r"\b" + re.escape(phrase) + r"\b", text, re.IGNORECASE) is not None


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(contains_phrase(text, phrase) for phrase in phrases)


def has_alert_trigger(query: str) -> bool:
    """True for any query that asks to be notified or alerted."""
    lowered = query.lower()
    return any(trigger in lowered for trigger in ALERT_TRIGGERS)


def tokens(text: str, min_length: int = 1) -> Set[str]:
    return {t for t in TOKEN_PATTERN.findall(text.lower()) if len(t) >= min_length}


def mentions_battery(query: str) -> bool:
    return contains_any(query, BATTERY_WORDS) or BATTERY_PERCENT_PATTERN.search(query) is not None


def mentions_data(query: str) -> bool:
    return (
        contains_any(query, DATA_WORDS)
        or DATA_GB_PATTERN.search(query) is not None
        or DATA_MB_PATTERN.search(query) is not None
    )


# ---------------------------------------------------------------------------
# EXTRACTION
# ---------------------------------------------------------------------------

def find_battery_threshold(query: str) -> Optional[int]:
    """First "NN%" in the query, capped to 100."""
    match = BATTERY_PERCENT_PATTERN.search(query)
    if not match:
        return None
    return min(int(match.group(1)), 100)


def find_data_threshold_mb(query: str) -> Optional[int]:
    """First data amount in the query, in MB. GB amounts win over MB amounts."""
    amount = None
    match = DATA_GB_PATTERN.search(query)
    if match:
        amount = float(match.group(1)) * MB_PER_GB
    else:
        match = DATA_MB_PATTERN.search(query)
        if match:
            amount = float(match.group(1))
    if amount is None or not math.isfinite(amount):
        return None
    return int(amount)


def find_limit(query: str) -> Optional[int]:
    match = TOP_N_PATTERN.search(query)
    if not match:
        return None
    value = match.group(1).lower()
    limit = NUMBER_WORDS.get(value) or int(value)
    return limit if limit > 0 else None


def find_duration(query: str) -> Optional[Duration]:
    match = DURATION_PATTERN.search(query)
    if not match:
        return None
    unit = match.group(2).lower()
    if unit.startswith("m"):
        unit = "minutes"
    elif unit.startswith("h"):
        unit = "hours"
    else:
        unit = "days"
    return Duration(value=int(match.group(1)), unit=unit)


def find_time_period(query: str) -> Optional[TimePeriod]:
    match = PERIOD_PATTERN.search(query)
    if match:
        return TimePeriod(value=int(match.group(1)), unit=match.group(2).lower())
    if contains_any(query, ("today", "yesterday", "24 hours")):
        return TimePeriod(value=1, unit="day")
    for unit in ("hour", "week", "month"):
        if contains_any(query, (f"this {unit}", f"last {unit}", f"past {unit}")):
            return TimePeriod(value=1, unit=unit)
    return None


def find_context(query: str) -> Optional[str]:
    for word, context in CONTEXT_WORDS.items():
        if contains_phrase(query, word):
            return context
    return None


def find_known_apps(query: str) -> List[str]:
    """Display names of well-known apps mentioned in the query."""
    found = []
    for name in KNOWN_APP_PACKAGES:
        if contains_phrase(query, name):
            # "Google Maps" already covers "Maps"
            if any(contains_phrase(other, name) for other in found):
                continue
            found.append(name)
    return found


def find_priority_apps(query: str) -> List[str]:
    """
    Apps the user wants left alone: "keep Maps and Gmail running".
    """
    match = KEEP_RUNNING_PATTERN.search(query)
    if not match:
        return []
    names = re.split(r",|\band\b|\bor\b", match.group(1))
    result = []
    for name in names:
        name = re.sub(r"^(?:my|the)\s+", "", name.strip(), flags=re.IGNORECASE)
        if name:
            result.append(name)
    return result
