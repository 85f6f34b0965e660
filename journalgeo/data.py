"""Built-in (canonical) content the journal is seeded with."""
from __future__ import annotations

from typing import List

from .models import JournalEntry, PlaceReference

_CANONICAL_JOURNAL = [
    {
        "day": 1,
        "date": "15 janvier 2024",
        "title": "Arrivée à Amman",
        "location": "Amman",
        "story": (
            "Premier contact avec la capitale jordanienne. L'accueil chaleureux de l'aéroport, les premières "
            "impressions de cette ville moderne et traditionnelle à la fois. Installation à l'hôtel et première "
            "promenade dans les rues d'Amman."
        ),
        "mood": "Excité",
    },
    {
        "day": 2,
        "date": "16 janvier 2024",
        "title": "Exploration d'Amman",
        "location": "Amman",
        "story": (
            "Visite de la citadelle d'Amman, du théâtre romain et du souk. Découverte de l'hospitalité jordanienne "
            "autour d'un thé à la menthe. Les contrastes saisissants entre ancien et moderne."
        ),
        "mood": "Émerveillé",
    },
    {
        "day": 3,
        "date": "17 janvier 2024",
        "title": "Jerash, joyau antique",
        "location": "Jerash",
        "story": (
            "Route vers Jerash, l'une des cités antiques les mieux préservées au monde. Déambulation dans les "
            "ruines romaines, l'arc d'Hadrien, le forum ovale. L'histoire prend vie sous nos yeux."
        ),
        "mood": "Fasciné",
    },
    {
        "day": 4,
        "date": "18 janvier 2024",
        "title": "Château d'Ajloun",
        "location": "Ajloun",
        "story": (
            "Visite du château d'Ajloun, forteresse islamique du XIIe siècle. Vue panoramique sur la vallée du "
            "Jourdain. Rencontre avec des locaux qui partagent l'histoire de leur région."
        ),
        "mood": "Enrichi",
    },
    {
        "day": 5,
        "date": "19 janvier 2024",
        "title": "Route vers Petra",
        "location": "Petra",
        "story": (
            "Départ matinal pour Petra. Premier aperçu de la cité rose à travers le Siq. L'émotion de découvrir le "
            "Trésor, taillé dans la roche rose. Exploration des tombeaux et du théâtre nabatéen."
        ),
        "mood": "Bouleversé",
    },
]

_CANONICAL_PLACES = [
    {
        "id": "place-amman-citadel",
        "day": 1,
        "name": "Amman",
        "summary": "Capitale du royaume hachémite, point de départ et de retour du voyage.",
        "coordinates": (35.9106, 31.9539),
        "mediaAssetIds": ["media-place-amman-panorama"],
    },
    {
        "id": "place-jerash-oval",
        "day": 2,
        "name": "Jerash",
        "summary": "Cité gréco-romaine remarquablement conservée, joyau du nord jordanien.",
        "coordinates": (35.8998, 32.2811),
        "mediaAssetIds": ["media-place-jerash-card", "media-journal-day-2-souk"],
    },
    {
        "id": "place-ajloun-fort",
        "day": 2,
        "name": "Ajloun",
        "summary": "Forteresse ayyoubide veillant sur les vallées verdoyantes et les oliveraies.",
        "coordinates": (35.7519, 32.3326),
        "mediaAssetIds": ["media-place-ajloun-castle"],
    },
]

CANONICAL_FOOD_IDS = ("mansaf", "falafel-houmous", "knafeh", "mint-tea-arabic-coffee")
CANONICAL_BOOK_IDS = (
    "lawrence-arabie",
    "petra-merveille",
    "bedouins-jordanie",
    "cuisine-moyen-orient",
)


def canonical_journal_entries() -> List[JournalEntry]:
    return [JournalEntry.model_validate(entry) for entry in _CANONICAL_JOURNAL]


def canonical_place_references() -> List[PlaceReference]:
    return [PlaceReference.model_validate(place) for place in _CANONICAL_PLACES]
