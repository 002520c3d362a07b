"""
Offline space-science explainer.

Questions are normalized to lower-case words and matched against keyword
sets; each matching set votes for an intent tag and the answer is looked up
by tag. Nothing here touches the network.
"""
from __future__ import annotations

import dataclasses
import logging
import re

_LOGGER = logging.getLogger(__name__)

DEFAULT_INTENT = "default"

# intent tag → keyword groups; a group matches when all of its words are present
INTENT_KEYWORDS: dict[str, tuple[frozenset[str], ...]] = {
    "solar_flares": (frozenset({"solar", "flare"}), frozenset({"flare"})),
    "iss_speed": (
        frozenset({"iss", "fast"}),
        frozenset({"iss", "speed"}),
        frozenset({"iss", "travel"}),
        frozenset({"space", "station", "fast"}),
    ),
    "kp_index": (frozenset({"kp"}), frozenset({"k", "index"})),
    "geomagnetic_storm": (frozenset({"geomagnetic"}), frozenset({"magnetic", "storm"})),
    "astronaut_training": (
        frozenset({"astronaut", "train"}),
        frozenset({"astronaut", "training"}),
    ),
    "launches": (frozenset({"launch"}), frozenset({"rocket"})),
}

RESPONSES: dict[str, str] = {
    "solar_flares": (
        "Solar flares are sudden, intense bursts of radiation from the Sun's surface, "
        "released when magnetic energy built up in the solar atmosphere snaps. They are "
        "classified A, B, C, M and X by power; X-class flares are the strongest. Their "
        "light reaches Earth in about 8 minutes and can disturb radio and GPS signals."
    ),
    "iss_speed": (
        "The International Space Station travels at about 27,600 km/h, roughly 7.7 km "
        "per second. At ~400 km altitude it completes an orbit every ~92 minutes, which "
        "means about 16 sunrises and sunsets per day."
    ),
    "kp_index": (
        "The Kp index measures global geomagnetic activity on a 0-9 scale. 0-3 is quiet, "
        "4-5 is active with possible high-latitude aurora, 6-7 is a storm with aurora at "
        "mid-latitudes, and 8-9 is severe with aurora at low latitudes."
    ),
    "geomagnetic_storm": (
        "A geomagnetic storm is a major disturbance of Earth's magnetosphere caused by "
        "solar wind shocks and coronal mass ejections. Storms raise the Kp index, push "
        "aurora towards the equator and can affect satellites, GPS and power grids."
    ),
    "astronaut_training": (
        "Astronauts train for years: spacewalk rehearsals in large pools, survival "
        "training, robotics and systems simulators, language lessons and flights on "
        "reduced-gravity aircraft."
    ),
    "launches": (
        "The launch panel lists the next scheduled orbital launches with provider, "
        "vehicle, pad and status. Times are NET, 'no earlier than', and often slip."
    ),
    DEFAULT_INTENT: (
        "I can answer questions about solar phenomena (flares, solar wind, geomagnetic "
        "storms), the ISS and satellite tracking, the Kp index, astronaut training and "
        "upcoming launches."
    ),
}

_WORD = re.compile(r"[a-z0-9]+")


@dataclasses.dataclass(frozen=True)
class Explanation:
    intent: str
    text: str
    ai_configured: bool = False


def normalize(question: str) -> frozenset[str]:
    """Lower-case word set with a trailing plural stripped from longer words."""
    words = set()
    for word in _WORD.findall(question.lower()):
        if len(word) > 4 and word.endswith(("ches", "shes", "xes")):
            word = word[:-2]
        elif len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
            word = word[:-1]
        words.add(word)
    return frozenset(words)


def classify_intent(question: str) -> str:
    """Intent tag whose keyword groups match the most words; DEFAULT_INTENT if none match."""
    words = normalize(question)
    best, best_score = DEFAULT_INTENT, 0
    for intent, groups in INTENT_KEYWORDS.items():
        score = max((len(group) for group in groups if group <= words), default=0)
        if score > best_score:
            best, best_score = intent, score
    return best


def explain(question: str, api_key_configured: bool = False) -> Explanation:
    """
    Answer a question from the offline lookup.

    Answers always come from RESPONSES; ai_configured only reports whether an
    explainer API key is present.
    """
    intent = classify_intent(question)
    _LOGGER.debug("Explainer intent for %r: %s", question, intent)
    return Explanation(
        intent=intent,
        text=RESPONSES[intent],
        ai_configured=api_key_configured,
    )
