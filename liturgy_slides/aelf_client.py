"""Client for the AELF liturgical readings API (api.aelf.org).

Failures never propagate to the caller: any network or format problem falls
back to a fixed set of sample readings, with the reason in ``error``.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from liturgy_slides.liturgy import READING_ORDER, Reading, ReadingType

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.aelf.org"
DEFAULT_ZONE = "france"

LECTURE_TYPES = {
    "premiere_lecture": ReadingType.FIRST_READING,
    "première_lecture": ReadingType.FIRST_READING,
    "lecture_1": ReadingType.FIRST_READING,
    "psaume": ReadingType.PSALM,
    "psaume_responsorial": ReadingType.PSALM,
    "deuxieme_lecture": ReadingType.SECOND_READING,
    "deuxième_lecture": ReadingType.SECOND_READING,
    "lecture_2": ReadingType.SECOND_READING,
    "evangile": ReadingType.GOSPEL,
    "évangile": ReadingType.GOSPEL,
}

DEFAULT_TITLES = {
    ReadingType.FIRST_READING: "Première lecture",
    ReadingType.PSALM: "Psaume responsorial",
    ReadingType.SECOND_READING: "Deuxième lecture",
    ReadingType.GOSPEL: "Évangile",
}


@dataclass
class ReadingsResult:
    date: date
    readings: List[Reading] = field(default_factory=list)
    error: Optional[str] = None
    source: str = "aelf"

    @property
    def is_sample(self) -> bool:
        return self.source == "sample"


class AELFFormatError(Exception):
    """The API answered, but not with usable readings."""


def clean_text(text: str) -> str:
    """Strip HTML markup and entities, collapse whitespace."""
    if not text:
        return ""
    plain = BeautifulSoup(text, "html.parser").get_text(" ")
    plain = plain.replace("\xa0", " ")
    return re.sub(r"\s+", " ", plain).strip()


def sample_readings(day: date) -> List[Reading]:
    iso = day.isoformat()
    return [
        Reading(
            id=f"first-{iso}",
            title="Première lecture",
            reference="Is 55, 10-11",
            text=(
                "Ainsi parle le Seigneur : « La pluie et la neige qui descendent des cieux "
                "n'y retournent pas sans avoir abreuvé la terre, sans l'avoir fécondée et "
                "l'avoir fait germer, donnant la semence au semeur et le pain à celui qui doit "
                "manger ; ainsi ma parole, qui sort de ma bouche, ne me reviendra pas sans "
                "résultat, sans avoir fait ce qui me plaît, sans avoir accompli sa mission. »"
            ),
            type=ReadingType.FIRST_READING,
        ),
        Reading(
            id=f"psalm-{iso}",
            title="Psaume responsorial",
            reference="Ps 64",
            text=(
                "Tu visites la terre et tu l'abreuves, tu la combles de richesses ; les "
                "ruisseaux de Dieu regorgent d'eau : tu prépares les moissons. Ainsi tu "
                "prépares la terre, tu arroses les sillons ; tu aplanis le sol, tu le détrempes "
                "sous les pluies, tu bénis les semailles."
            ),
            type=ReadingType.PSALM,
        ),
        Reading(
            id=f"gospel-{iso}",
            title="Évangile",
            reference="Mt 13, 1-23",
            text=(
                "Ce jour-là, Jésus était sorti de la maison, et il était assis au bord de la "
                "mer. Auprès de lui se rassemblèrent des foules si grandes qu'il monta dans une "
                "barque où il s'assit ; toute la foule se tenait sur le rivage. Il leur dit "
                "beaucoup de choses en paraboles : « Voici que le semeur sortit pour semer. "
                "Comme il semait, des grains sont tombés au bord du chemin, et les oiseaux sont "
                "venus tout manger. »"
            ),
            type=ReadingType.GOSPEL,
        ),
    ]


def parse_messes(data: dict, day: date) -> List[Reading]:
    """Map the first mass of an AELF ``/messes`` payload to readings.

    Raises:
        AELFFormatError: if the payload holds no mass, no lecture, or no
            lecture of a known type
    """
    messes = data.get("messes") if isinstance(data, dict) else None
    if not messes:
        raise AELFFormatError("Aucune messe trouvée pour cette date")

    # The first mass is the main celebration of the day
    lectures = messes[0].get("lectures") or []
    if not lectures:
        raise AELFFormatError("Aucune lecture trouvée pour cette messe")

    found: Dict[ReadingType, Reading] = {}
    iso = day.isoformat()

    for index, lecture in enumerate(lectures):
        raw_type = str(lecture.get("type", ""))
        kind = LECTURE_TYPES.get(raw_type.lower())
        if kind is None:
            logger.info(f"Skipping unrecognised lecture type: {raw_type}")
            continue
        found[kind] = Reading(
            id=f"{raw_type}-{iso}-{index}",
            title=lecture.get("titre") or DEFAULT_TITLES[kind],
            reference=lecture.get("ref") or "",
            text=clean_text(lecture.get("contenu", "")),
            type=kind,
        )

    if not found:
        raise AELFFormatError("Types de lectures non reconnus dans la réponse API")

    return [found[k] for k in READING_ORDER if k in found]


class AELFClient:
    """Fetches the readings of the day's mass."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, zone: str = DEFAULT_ZONE, timeout: float = 30):
        self.base_url = base_url.rstrip("/")
        self.zone = zone
        self.timeout = timeout
        self.headers = {
            "Accept": "application/json",
            "User-Agent": "Mozilla/5.0 (compatible; LiturgySlides/1.0)",
            "Cache-Control": "no-cache",
        }

    def url_for(self, day: date) -> str:
        return f"{self.base_url}/v1/messes/{day.isoformat()}/{self.zone}"

    def get_readings(self, day: date) -> ReadingsResult:
        url = self.url_for(day)
        logger.info(f"Fetching readings from {url}")

        try:
            response = requests.get(url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.warning(f"AELF API error ({status}): {e}")
            return self._fallback(day, f"Erreur API AELF ({status})")
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to reach AELF API: {e}")
            return self._fallback(day, "Impossible de contacter l'API AELF. Utilisation des données d'exemple.")

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            body = response.text or ""
            logger.warning(f"Non-JSON response received: {body[:200]!r}")
            if body.lstrip().startswith("<"):
                return self._fallback(day, "L'API AELF a retourné une page d'erreur au lieu des données JSON")
            return self._fallback(day, "Format de réponse invalide de l'API AELF")

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Could not decode AELF JSON: {e}")
            return self._fallback(day, "Erreur de format dans la réponse de l'API AELF")

        try:
            readings = parse_messes(data, day)
        except AELFFormatError as e:
            logger.warning(str(e))
            return self._fallback(day, str(e))

        logger.info(f"Loaded {len(readings)} readings for {day.isoformat()}")
        return ReadingsResult(date=day, readings=readings)

    def _fallback(self, day: date, error: str) -> ReadingsResult:
        return ReadingsResult(date=day, readings=sample_readings(day), error=error, source="sample")
