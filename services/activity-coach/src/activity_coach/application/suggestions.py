"""
Example rephrasings for ambiguous input, chosen by keyword.
Every example is phrased so the fast pattern matcher accepts it.
"""

import re
from typing import List, Tuple

MAX_SUGGESTIONS = 3

SUGGESTION_RULES: Tuple[Tuple[re.Pattern, Tuple[str, ...]], ...] = (
    (
        re.compile(r"\b(?:eat|eats|eating|ate|food|meal|breakfast|lunch|dinner|snack|hungry)\b"),
        (
            "Had eggs and toast for breakfast",
            "Ate a chicken salad for lunch",
            "Had a banana for a snack",
        ),
    ),
    (
        re.compile(r"\b(?:exercise|exercised|workout|worked out|gym|train|training|run|ran)\b"),
        (
            "Ran 5k in 30 minutes",
            "Did 3 sets of 10 pushups",
            "Walked 2 miles in 40 minutes",
        ),
    ),
    (
        re.compile(r"\b(?:weigh|weighed|weight|scale)\b"),
        ("Weight 175 lbs", "Weighed 80 kg this morning"),
    ),
    (
        re.compile(r"\b(?:energy|energetic)\b"),
        ("Energy 8/10", "Energy level 3/10 this afternoon"),
    ),
    (
        re.compile(r"\b(?:feel|feels|feeling|felt|mood)\b"),
        ("Feeling great today", "Energy level 8/10"),
    ),
    (
        re.compile(r"\b(?:sleep|slept|sleeping|tired|bed|nap)\b"),
        ("Slept 8 hours", "Got 7.5 hours of good sleep"),
    ),
    (
        re.compile(r"\b(?:water|drink|drank|thirsty|hydrate|hydration)\b"),
        ("Drank 64 oz water", "Had 2 cups of water"),
    ),
)

GENERAL_SUGGESTIONS = (
    "Weight 175",
    "Had eggs for breakfast",
    "Ran 5k",
    "Feeling great",
)


def suggest_rephrasings(text: str) -> List[str]:
    """Up to three example phrasings for the first keyword group found in text"""
    normalized = (text or "").lower()
    for pattern, examples in SUGGESTION_RULES:
        if pattern.search(normalized):
            return list(examples[:MAX_SUGGESTIONS])
    return list(GENERAL_SUGGESTIONS[:MAX_SUGGESTIONS])
