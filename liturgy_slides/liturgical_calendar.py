from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class LiturgicalSeason:
    key: str
    name: str
    color: str
    text_color: str
    background_color: str


SEASONS = {
    "advent": LiturgicalSeason("advent", "Avent", "#6B46C1", "6B46C1", "F3F4F6"),
    "christmas": LiturgicalSeason("christmas", "Temps de Noël", "#FFFFFF", "1F2937", "FFFFFF"),
    "ordinary": LiturgicalSeason("ordinary", "Temps ordinaire", "#059669", "059669", "F9FAFB"),
    "lent": LiturgicalSeason("lent", "Carême", "#6B46C1", "6B46C1", "F3F4F6"),
    "holy_week": LiturgicalSeason("holy_week", "Semaine sainte", "#DC2626", "DC2626", "FEF2F2"),
    "easter": LiturgicalSeason("easter", "Temps pascal", "#FFFFFF", "1F2937", "FFFFFF"),
    "pentecost": LiturgicalSeason("pentecost", "Pentecôte", "#DC2626", "DC2626", "FEF2F2"),
}


def easter_date(year: int) -> date:
    """Gregorian Easter Sunday (anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def first_sunday_of_advent(year: int) -> date:
    # Fourth Sunday before Christmas: always between Nov 27 and Dec 3.
    start = date(year, 11, 27)
    return start + timedelta(days=(6 - start.weekday()) % 7)


def liturgical_season(day: date) -> LiturgicalSeason:
    if first_sunday_of_advent(day.year) <= day <= date(day.year, 12, 24):
        return SEASONS["advent"]

    if day >= date(day.year, 12, 25) or day <= date(day.year, 1, 13):
        return SEASONS["christmas"]

    easter = easter_date(day.year)
    ash_wednesday = easter - timedelta(days=46)
    palm_sunday = easter - timedelta(days=7)
    pentecost = easter + timedelta(days=49)

    if ash_wednesday <= day < palm_sunday:
        return SEASONS["lent"]
    if palm_sunday <= day < easter:
        return SEASONS["holy_week"]
    if easter <= day < pentecost:
        return SEASONS["easter"]
    if day == pentecost:
        return SEASONS["pentecost"]

    return SEASONS["ordinary"]
