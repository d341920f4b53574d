"""Turn sun times into what the daylight screen shows: an arc, a theme and a sentence."""

from __future__ import annotations

import math
import random
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .astro import round_half_up, shift_days
from .sun import DEFAULT_SUN_TIMES, SunTimeAngle, SunTimes, get_times

__all__ = [
    "THEMES",
    "ArcPoint",
    "DaySummary",
    "Fragment",
    "MessageKind",
    "Theme",
    "day_progress",
    "daylight_diff",
    "daylight_minutes",
    "generate_sentence",
    "get_day",
    "select_theme",
    "sun_arc_position",
]


@dataclass(frozen=True)
class ArcPoint:
    x: float
    y: float


@dataclass(frozen=True)
class Theme:
    name: str
    text_rgb: Tuple[int, int, int]
    background_rgb: Tuple[int, int, int]


THEMES: Dict[str, Theme] = {
    "sunrise": Theme("sunrise", (219, 96, 40), (253, 237, 168)),
    "daylight": Theme("daylight", (160, 76, 44), (250, 221, 164)),
    "sunset": Theme("sunset", (160, 76, 44), (247, 197, 177)),
    "twilight": Theme("twilight", (64, 88, 155), (211, 229, 253)),
    "night": Theme("night", (144, 207, 239), (6, 19, 31)),
}


@dataclass(frozen=True)
class Fragment:
    text: str
    emphasize: bool = False


@dataclass(frozen=True)
class DaySummary:
    theme: Theme
    sentence: Tuple[Fragment, ...]
    minutes: int
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    kind: Optional[MessageKind] = None


def sun_arc_position(progress: float) -> Optional[ArcPoint]:
    """Position of the sun on a half-circle arc spanning a 100x100 box.

    ``progress`` is the elapsed fraction of daylight; values outside [0, 1]
    have no position. The arc starts at (0, 0), peaks at (50, 100) and ends
    at (100, 0).
    """

    if progress < 0 or progress > 1:
        return None
    position = math.pi + progress * math.pi
    return ArcPoint(x=50 + math.cos(position) * 50, y=abs(math.sin(position) * 100))


def day_progress(now: datetime, times: SunTimes) -> Optional[float]:
    """Elapsed fraction of the sunrise-to-sunset span, unbounded outside daylight."""

    sunrise = times.get("sunrise")
    sunset = times.get("sunset")
    if sunrise is None or sunset is None:
        return None
    return (now - sunrise) / (sunset - sunrise)


def daylight_minutes(times: SunTimes) -> Optional[float]:
    """Minutes between the end of sunrise and sunset."""

    start = times.get("sunrise_end")
    end = times.get("sunset")
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 60.0


def daylight_diff(x: float, y: float) -> int:
    return abs(round_half_up(x - y))


def _between(now: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    return start is not None and end is not None and start <= now <= end


def select_theme(now: datetime, times: SunTimes) -> Theme:
    """Pick the screen theme for *now*.

    Events that do not occur on this day never match, so a polar day with no
    sunrise or sunset falls through to twilight unless night applies.
    """

    if _between(now, times.get("sunrise"), times.get("sunrise_end")):
        name = "sunrise"
    elif _between(now, times.get("sunrise_end"), times.get("sunset_start")):
        name = "daylight"
    elif _between(now, times.get("sunset_start"), times.get("sunset")):
        name = "sunset"
    else:
        night = times.get("night")
        night_end = times.get("night_end")
        if (night is not None and now >= night) or (night_end is not None and now <= night_end):
            name = "night"
        else:
            name = "twilight"
    return THEMES[name]


class MessageKind(Enum):
    """How much the daylight length changed, from the viewpoint of day or night."""

    LONGER_MORE_THAN_A_MINUTE = 0
    LONGER_ONE_MINUTE = 1
    LONGER_LESS_THAN_A_MINUTE = 2
    SHORTER_MORE_THAN_A_MINUTE = 3
    SHORTER_ONE_MINUTE = 4
    SHORTER_LESS_THAN_A_MINUTE = 5
    LONGER_TOMORROW_MORE_THAN_A_MINUTE = 6
    LONGER_TOMORROW_ONE_MINUTE = 7
    LONGER_TOMORROW_LESS_THAN_A_MINUTE = 8
    SHORTER_TOMORROW_MORE_THAN_A_MINUTE = 9
    SHORTER_TOMORROW_ONE_MINUTE = 10
    SHORTER_TOMORROW_LESS_THAN_A_MINUTE = 11

    @classmethod
    def classify(
        cls,
        is_night: bool,
        yesterday_seconds: float,
        today_seconds: float,
        tomorrow_seconds: float,
    ) -> "MessageKind":
        """Classify the change in daylight length.

        At night tomorrow is compared with today, otherwise today with
        yesterday. Changes above 150 s count as more than a minute, above
        60 s as one minute.
        """

        if is_night:
            before, after, base = today_seconds, tomorrow_seconds, 6
        else:
            before, after, base = yesterday_seconds, today_seconds, 0
        change = after - before
        if change <= 0:
            base += 3
        change = abs(change)
        if change > 150:
            offset = 0
        elif change > 60:
            offset = 1
        else:
            offset = 2
        return cls(base + offset)


# Emphasized spans are wrapped in ``**``; ``{minutes}`` and ``{unit}`` are
# filled in before the template is split into fragments.
_SENTENCES: Dict[Tuple[str, str, str], Tuple[str, ...]] = {
    ("day", "positive", "minutes"): (
        "Today is **{minutes} {unit} **longer than yesterday. Happy days!",
        "The sun is out for **{minutes} more {unit} **today. Enjoy!",
        "**{minutes} extra {unit} **of sunshine today. Make them count!",
        "Make sure to soak up that vitamin D. **{minutes} more {unit} **of daylight today!",
        "Smile! Today has **{minutes} more {unit} **of daylight than yesterday!",
        "**{minutes} more {unit} **of daylight today. Just let it sink in…",
        "Today is **{minutes} {unit} longer**. It’s getting better and better!",
        "Bring out your shorts, because today has **{minutes} more {unit} **of sunlight.",
        "Have a great day and enjoy those **{minutes} extra {unit} **of daylight.",
        "After darkness comes daylight. **{minutes} more {unit} **to be precise!",
    ),
    ("day", "positive", "seconds"): (
        "Little less than **a minute **of extra sunlight today. It’s getting better!",
        "We’ve reached the tipping point: we’ll have more sunlight every day now!",
        "**About a minute **of extra light. You’ll start noticing the difference soon!",
        "There’s **about a minute **of extra light at the end of this tunnel.",
        "We’ll have **about a minute **of extra light today. It’s upwards from here.",
    ),
    ("day", "negative", "minutes"): (
        "The sun will be out **{minutes} {unit} less **today. Keep your head up!",
        "**{minutes} {unit} less **sunlight today, unfortunately. It’ll get better!",
        "Sadly, the day will be **{minutes} {unit} shorter**. Make the most out of it!",
    ),
    ("day", "negative", "seconds"): (
        "Unfortunately, the day is a little bit shorter today. Make the most out of it!",
        "Sadly, today is a tiny bit shorter than yesterday. Enjoy it while it lasts!",
        "Today is shorter than yesterday. But fear not, brighter times ahead!",
    ),
    ("night", "positive", "minutes"): (
        "Get a good night’s sleep: tomorrow there’ll be **{minutes} more {unit} **of sunlight.",
        "Lights out. Enjoy **{minutes} more {unit} **of sunlight tomorrow!",
        "Bring out those pyjamas. **{minutes} more {unit} **of light await tomorrow.",
        "The sun has set for today. Embrace those **{minutes} {unit} **of extra daylight tomorrow.",
        "The sun has set. Soak up the extra vitamin D tomorrow!",
    ),
    ("night", "positive", "seconds"): (
        "Get a good night’s sleep: tomorrow there’ll be more sunlight for you.",
        "Bring out those pyjamas. More daylight awaits tomorrow!",
        "The sun has set. Soak up the extra vitamin D tomorrow!",
    ),
    ("night", "negative", "minutes"): (
        "Unfortunately, tomorrow will be **{minutes} {unit} **shorter than today. Make the most out of it!",
        "Sadly, tomorrow will be **{minutes} {unit} **shorter than today. Enjoy it while it lasts!",
        "Tomorrow will be **{minutes} {unit} **shorter than today. But fear not, brighter times ahead!",
    ),
    ("night", "negative", "seconds"): (
        "Unfortunately, tomorrow will be a little bit shorter than today. Make the most out of it!",
        "Sadly, tomorrow will be a tiny bit shorter than today. Enjoy it while it lasts!",
        "Tomorrow will be shorter than today. But fear not, brighter times ahead!",
    ),
}

_EMPHASIS = re.compile(r"\*\*(.+?)\*\*")


def _fragments(template: str) -> List[Fragment]:
    fragments: List[Fragment] = []
    position = 0
    for match in _EMPHASIS.finditer(template):
        if match.start() > position:
            fragments.append(Fragment(template[position : match.start()]))
        fragments.append(Fragment(match.group(1), emphasize=True))
        position = match.end()
    if position < len(template):
        fragments.append(Fragment(template[position:]))
    return fragments


def generate_sentence(
    minutes: int,
    longer: bool,
    night: bool,
    rng: Optional[random.Random] = None,
) -> List[Fragment]:
    """Pick a sentence describing the change in daylight.

    Parameters
    ----------
    minutes:
        Size of the change in whole minutes; below one the "about a minute"
        wording is used.
    longer:
        Whether the day grows.
    night:
        Night sentences talk about tomorrow instead of today.
    rng:
        Source of randomness, pass a seeded :class:`random.Random` for
        reproducible picks.
    """

    rng = rng or random.Random()
    key = (
        "night" if night else "day",
        "positive" if longer else "negative",
        "minutes" if minutes >= 1 else "seconds",
    )
    unit = "minutes" if minutes > 1 else "minute"
    template = rng.choice(_SENTENCES[key])
    return _fragments(template.format(minutes=minutes, unit=unit))


def _daylight_change(
    daylight: Dict[str, Optional[float]], night: bool
) -> Optional[Tuple[int, bool]]:
    """Rounded minutes of change and whether the later day is longer.

    At night tomorrow is compared with today, otherwise yesterday with today.
    """

    other = "tomorrow" if night else "yesterday"
    if daylight[other] is None or daylight["now"] is None:
        return None
    minutes = daylight_diff(daylight[other], daylight["now"])
    if night:
        return minutes, daylight["tomorrow"] > daylight["now"]
    return minutes, daylight["now"] > daylight["yesterday"]


def get_day(
    now: datetime,
    lat: float,
    lng: float,
    rng: Optional[random.Random] = None,
    times: Sequence[SunTimeAngle] = DEFAULT_SUN_TIMES,
) -> DaySummary:
    """Summarise the day at *now*: theme, sentence, sunrise and sunset.

    Yesterday and tomorrow are taken as the same wall-clock time one
    calendar day away in the timezone of *now*. During the day the sentence
    compares today's daylight with yesterday's; at night it looks ahead to
    tomorrow.
    """

    days = {
        "now": get_times(now, lat, lng, times),
        "yesterday": get_times(shift_days(now, -1), lat, lng, times),
        "tomorrow": get_times(shift_days(now, 1), lat, lng, times),
    }
    daylight = {key: daylight_minutes(value) for key, value in days.items()}

    theme = select_theme(now, days["now"])
    night = theme.name == "night"

    minutes = 0
    sentence: List[Fragment] = []
    change = _daylight_change(daylight, night)
    if change is not None:
        minutes, longer = change
        sentence = generate_sentence(minutes, longer, night, rng)

    kind = None
    if None not in daylight.values():
        kind = MessageKind.classify(
            night,
            daylight["yesterday"] * 60,
            daylight["now"] * 60,
            daylight["tomorrow"] * 60,
        )

    return DaySummary(
        theme=theme,
        sentence=tuple(sentence),
        minutes=minutes,
        sunrise=days["now"].get("sunrise"),
        sunset=days["now"].get("sunset"),
        kind=kind,
    )
