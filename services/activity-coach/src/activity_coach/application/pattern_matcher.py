"""
Activity Coach - Fast Pattern Matcher
Rule-based extraction for common phrasings before any model call.

Matchers run in a fixed priority order and the first match wins:
weight -> energy -> sleep -> water -> food -> workout -> mood.
A bare number (with optional unit) is therefore always a weight.
"""

import re
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from shared.models import (
    ActivityKind,
    EnergyPayload,
    FoodItem,
    FoodPayload,
    MoodPayload,
    ParsedActivity,
    SleepPayload,
    WaterPayload,
    WeightPayload,
    WorkoutPayload,
    WorkoutSet,
)
from shared.utils.logger import get_logger, preview

logger = get_logger(__name__)


# ============================================================================
# CONFIDENCE BY SHAPE
# ============================================================================

EXACT_WEIGHT_CONFIDENCE = 0.95
PHRASED_WEIGHT_CONFIDENCE = 0.9
ENERGY_CONFIDENCE = 0.95
SLEEP_CONFIDENCE = 0.95
WATER_CONFIDENCE = 0.9
FOOD_CONFIDENCE = 0.85
WORKOUT_CONFIDENCE = 0.85
MOOD_CONFIDENCE = 0.85


# ============================================================================
# VOCABULARY
# ============================================================================

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

FOOD_WORDS = (
    "eggs", "toast", "chicken", "rice", "salad", "sandwich", "pizza",
    "pasta", "steak", "fish", "vegetables", "fruit", "yogurt", "cereal",
    "oatmeal", "coffee", "tea", "juice", "milk", "cheese", "bread",
    "apple", "banana", "orange", "berries", "nuts", "soup", "burger",
)

NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}

# (pattern, activity name, canonical verb phrase)
CARDIO_ACTIVITIES: Tuple[Tuple[str, str, str], ...] = (
    (r"\b(?:ran|run|runs|running)\b", "running", "ran"),
    (r"\b(?:jog|jogs|jogged|jogging)\b", "jogging", "jogged"),
    (r"\b(?:walk|walks|walked|walking)\b", "walking", "walked"),
    (r"\b(?:hike|hikes|hiked|hiking)\b", "hiking", "hiked"),
    (r"\b(?:cycle|cycled|cycling|bike|biked|biking)\b", "cycling", "cycled"),
    (r"\b(?:swim|swam|swims|swimming)\b", "swimming", "swam"),
    (r"\b(?:rowed|rowing)\b", "rowing", "rowed"),
    (r"\byoga\b", "yoga", "did yoga"),
    (r"\b(?:workout|worked out|exercise|exercised|gym|trained|training)\b", "exercise", "exercised"),
)

INTENSITY_PATTERNS: Tuple[Tuple[str, str], ...] = (
    (r"\b(?:hard|intense|tempo|sprints?|hiit|high[- ]intensity)\b", "high"),
    (r"\b(?:moderate|steady|medium[- ]intensity)\b", "medium"),
    (r"\b(?:easy|light|gentle|recovery|low[- ]intensity)\b", "low"),
)

# Checked in order; negated positives sit before the plain positives
MOOD_PATTERNS: Tuple[Tuple[str, str], ...] = (
    (r"\b(?:terrible|awful|horrible|miserable)\b", "terrible"),
    (r"\bnot\s+(?:so\s+|very\s+|feeling\s+)?(?:good|great|well|okay|ok)\b", "bad"),
    (r"\b(?:bad|poor|down|sad|low|rough|stressed)\b", "bad"),
    (r"\b(?:great|excellent|amazing|fantastic|awesome)\b", "great"),
    (r"\b(?:good|fine|well|happy)\b", "good"),
    (r"\b(?:okay|ok|alright|so-so|meh)\b", "okay"),
)

SLEEP_QUALITY = {
    "great": "great", "good": "good", "well": "good",
    "poor": "poor", "bad": "poor", "badly": "poor", "restless": "poor",
}

# Smallest phrased values accepted as a body weight; below these the
# number is more likely a change ("lost weight 2 lbs") or a set count
MIN_BODY_WEIGHT = {"lbs": 50.0, "kg": 20.0}


def _number(value: str) -> float:
    return float(value)


def _fmt(value: float) -> str:
    return f"{value:g}"


class FastPatternMatcher:
    """
    Deterministic regex/keyword extraction for unambiguous activity logs.

    Stateless after construction and safe to share between concurrent
    requests. `match` never raises; None means "escalate to the model".
    """

    def __init__(self):
        self.patterns = self._compile_patterns()
        self._cardio = [
            (re.compile(pattern), activity, verb) for pattern, activity, verb in CARDIO_ACTIVITIES
        ]
        self._intensity = [(re.compile(pattern), level) for pattern, level in INTENSITY_PATTERNS]
        self._moods = [(re.compile(pattern), mood) for pattern, mood in MOOD_PATTERNS]
        self._food_stems = {word.rstrip("s"): word for word in FOOD_WORDS}
        self._matchers: Tuple[Callable[[str, str], Optional[ParsedActivity]], ...] = (
            self._match_weight,
            self._match_energy,
            self._match_sleep,
            self._match_water,
            self._match_food,
            self._match_workout,
            self._match_mood,
        )

    def _compile_patterns(self) -> dict:
        """Compile regex patterns for extraction"""
        food_alternation = "|".join(word.rstrip("s") + "s?" for word in FOOD_WORDS)
        number_words = "|".join(NUMBER_WORDS)
        return {
            # Weight
            "weight_exact": re.compile(r"^(?:weight\s+)?(\d+(?:\.\d+)?)\s*(lbs?|kg|kilos?|pounds?)?$"),
            "weight_phrased": re.compile(
                r"\bweigh(?:ed|s|t|ing)?(?:\s+is)?(?:\s+in)?(?:\s+at)?\s*:?\s*"
                r"(\d+(?:\.\d+)?)\s*(lbs?|kg|kilos?|pounds?)?\b"
            ),
            "weight_change": re.compile(
                r"\b(?:lost|lose|losing|gained|gain|gaining|dropped|drop|shed|put\s+on|down|up)"
                r"(?:\s+(?:some|the|my))?\s*$"
            ),
            "weight_set_tail": re.compile(r"\s*(?:sets?\b|reps?\b|x\s*\d)"),
            # Energy; decimals decline
            "energy": re.compile(
                r"\benergy(?:\s+level)?(?:\s+(?:is|at|of))?\s*:?\s*(\d+)(?!\.\d)(?:\s*/\s*10)?\b"
            ),
            # Sleep
            "sleep_direct": re.compile(
                r"\b(?:slept|sleep)\s+(?:for\s+)?(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)?\b"
            ),
            "sleep_hours": re.compile(
                r"\b(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)\s+(?:of\s+)?"
                r"(?:(great|good|poor|bad|restless)\s+)?sleep\b"
            ),
            # Quality word directly after "slept N hours"
            "sleep_quality": re.compile(
                r"\s*(?:of\s+)?(great|good|well|poor|bad|badly|restless)(?:\s+sleep)?\b"
            ),
            # Water
            "water_keyword": re.compile(r"\b(?:water|drank|drink|drinking)\b"),
            "water": re.compile(
                r"\b(\d+(?:\.\d+)?)\s*(oz|ounces?|ml|cups?|glass(?:es)?|liters?|litres?|l)\b"
            ),
            # Food
            "meal": re.compile(r"\b(breakfast|lunch|dinner|snacks?)\b"),
            "food_verb": re.compile(r"\b(?:had|ate|eat|eating|for)\b"),
            "food_item": re.compile(
                rf"\b(?:(\d+(?:\.\d+)?|{number_words})\s+)?({food_alternation})\b"
            ),
            # Workout
            "distance": re.compile(
                r"\b(\d+(?:\.\d+)?)\s*(kilometers?|kilometres?|km|k|miles?|mi|meters?|metres?|m)\b"
            ),
            "duration": re.compile(r"\b(\d+(?:\.\d+)?)\s*(mins?|minutes?|hours?|hrs?)\b"),
            "sets_of": re.compile(
                r"\b(\d{1,2})\s*sets?\s+of\s+(\d{1,3})(?:\s+reps?)?"
                r"(?:\s+(?:of\s+)?(?!at\b|with\b|for\b|in\b)([a-z][a-z-]*))?"
            ),
            "sets_x": re.compile(
                r"\b(?:(?!did\b|do\b|done\b|and\b|then\b)([a-z][a-z-]*)\s+)?(\d{1,2})\s*x\s*(\d{1,3})\b"
            ),
            "set_weight": re.compile(r"(?:\bat|\bwith|@)\s*(\d+(?:\.\d+)?)\s*(lbs?|kg|kilos?|pounds?)\b"),
            "strength": re.compile(
                r"\b(push-?ups?|pull-?ups?|sit-?ups?|squats?|lunges?|burpees?|deadlifts?|"
                r"bench(?:\s+press)?|planks?|curls?)\b"
            ),
            # Mood
            "mood_keyword": re.compile(r"\b(?:feeling|feel|feels|felt|mood)\b"),
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def match(self, text: str) -> Optional[ParsedActivity]:
        """
        Try every matcher in priority order

        Returns:
            ParsedActivity for the first matcher that accepts the text, or None
        """
        normalized = " ".join((text or "").lower().split())
        if not normalized:
            return None

        for matcher in self._matchers:
            try:
                activity = matcher(normalized, text)
            except ValidationError as e:
                # Out-of-range values (energy 42, slept 30 hours) decline
                logger.debug(f"{matcher.__name__} declined {preview(text)!r}: {e.error_count()} errors")
                continue
            if activity is not None:
                logger.debug(
                    f"Fast path matched {activity.kind.value} "
                    f"(confidence={activity.confidence}) for {preview(text)!r}"
                )
                return activity
        return None

    def match_segments(self, text: str) -> List[ParsedActivity]:
        """
        Split a compound entry and match each segment

        "ran 5k; slept 8 hours, weight 175" yields three activities in input
        order. Segments without a local match are dropped.
        """
        segments = re.split(r"\s*(?:[;,\n]|\band then\b|\bthen\b)\s*", text or "", flags=re.IGNORECASE)
        activities = []
        for segment in segments:
            segment = segment.strip()
            if not segment:
                continue
            activity = self.match(segment)
            if activity is not None:
                activities.append(activity)
        return activities

    # ------------------------------------------------------------------
    # Matchers
    # ------------------------------------------------------------------

    def _match_weight(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        match = self.patterns["weight_exact"].match(text)
        confidence = EXACT_WEIGHT_CONFIDENCE
        phrased = False
        if not match:
            match = self.patterns["weight_phrased"].search(text)
            confidence = PHRASED_WEIGHT_CONFIDENCE
            phrased = True
        if not match:
            return None

        value = _number(match.group(1))
        if value <= 0:
            return None
        unit = "kg" if match.group(2) and "k" in match.group(2) else "lbs"
        if phrased and (
            value < MIN_BODY_WEIGHT[unit]
            or self.patterns["weight_change"].search(text[: match.start()])
            or self.patterns["weight_set_tail"].match(text, match.end())
        ):
            return None
        return ParsedActivity(
            kind=ActivityKind.WEIGHT,
            payload=WeightPayload(value=value, unit=unit),
            confidence=confidence,
            raw_text=raw_text,
        )

    def _match_energy(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        match = self.patterns["energy"].search(text)
        if not match:
            return None
        return ParsedActivity(
            kind=ActivityKind.ENERGY,
            payload=EnergyPayload(level=int(match.group(1))),
            confidence=ENERGY_CONFIDENCE,
            raw_text=raw_text,
        )

    def _match_sleep(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        quality = None
        match = self.patterns["sleep_hours"].search(text)
        if match:
            quality = SLEEP_QUALITY.get(match.group(2) or "")
        else:
            match = self.patterns["sleep_direct"].search(text)
            if not match:
                return None
            quality_match = self.patterns["sleep_quality"].match(text, match.end())
            if quality_match:
                quality = SLEEP_QUALITY[quality_match.group(1)]

        return ParsedActivity(
            kind=ActivityKind.SLEEP,
            payload=SleepPayload(hours=_number(match.group(1)), quality=quality),
            confidence=SLEEP_CONFIDENCE,
            raw_text=raw_text,
        )

    def _match_water(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        if not self.patterns["water_keyword"].search(text):
            return None
        match = self.patterns["water"].search(text)
        if not match:
            return None

        amount = _number(match.group(1))
        if amount <= 0:
            return None
        unit_token = match.group(2)
        if unit_token == "ml":
            unit = "ml"
        elif unit_token.startswith(("cup", "glass")):
            unit = "cups"
        elif unit_token.startswith(("liter", "litre")) or unit_token == "l":
            unit = "liters"
        else:
            unit = "oz"
        return ParsedActivity(
            kind=ActivityKind.WATER,
            payload=WaterPayload(amount=amount, unit=unit),
            confidence=WATER_CONFIDENCE,
            raw_text=raw_text,
        )

    def _match_food(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        meal_match = self.patterns["meal"].search(text)
        items = self._extract_food_items(text)
        if not meal_match and not (items and self.patterns["food_verb"].search(text)):
            return None

        meal = meal_match.group(1).rstrip("s") if meal_match else None
        return ParsedActivity(
            kind=ActivityKind.FOOD,
            payload=FoodPayload(items=items or [FoodItem(name="meal")], meal=meal),
            confidence=FOOD_CONFIDENCE,
            raw_text=raw_text,
        )

    def _extract_food_items(self, text: str) -> List[FoodItem]:
        """Food words in order of appearance, with a leading quantity when given"""
        items = []
        seen = set()
        for match in self.patterns["food_item"].finditer(text):
            name = self._food_stems.get(match.group(2).rstrip("s"))
            if name is None or name in seen:
                continue
            seen.add(name)
            quantity_token = match.group(1)
            quantity = None
            if quantity_token:
                quantity = NUMBER_WORDS.get(quantity_token) or _number(quantity_token)
            items.append(FoodItem(name=name, quantity=quantity or None))
        return items

    def _match_workout(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        cardio = next(
            ((activity, verb) for pattern, activity, verb in self._cardio if pattern.search(text)),
            None,
        )
        sets, set_exercise = self._extract_sets(text)
        strength = self.patterns["strength"].search(text)
        if cardio is None and sets is None and strength is None:
            return None

        if set_exercise:
            activity = set_exercise
        elif strength:
            activity = strength.group(1)
        else:
            activity = cardio[0] if cardio else "exercise"

        distance = distance_unit = None
        match = self.patterns["distance"].search(text)
        if match:
            distance = _number(match.group(1))
            unit_token = match.group(2)
            if unit_token in ("k", "km") or unit_token.startswith("kilomet"):
                distance_unit = "km"
            elif unit_token.startswith("mi"):
                distance_unit = "miles"
            else:
                distance_unit = "m"

        duration = None
        match = self.patterns["duration"].search(text)
        if match:
            value = _number(match.group(1))
            duration = value * 60 if match.group(2).startswith(("hour", "hr")) else value

        intensity = next(
            (level for pattern, level in self._intensity if pattern.search(text)), None
        )

        return ParsedActivity(
            kind=ActivityKind.WORKOUT,
            payload=WorkoutPayload(
                activity=activity,
                duration=duration,
                distance=distance,
                distance_unit=distance_unit,
                sets=sets,
                intensity=intensity,
            ),
            confidence=WORKOUT_CONFIDENCE,
            raw_text=raw_text,
        )

    def _extract_sets(self, text: str) -> Tuple[Optional[List[WorkoutSet]], Optional[str]]:
        """Parse "3 sets of 10 pushups" or "bench 3x8 at 135 lbs" into sets"""
        match = self.patterns["sets_of"].search(text)
        if match:
            count, reps, exercise = int(match.group(1)), int(match.group(2)), match.group(3)
        else:
            match = self.patterns["sets_x"].search(text)
            if not match:
                return None, None
            exercise, count, reps = match.group(1), int(match.group(2)), int(match.group(3))
        if count < 1:
            return None, None

        weight = weight_unit = None
        weight_match = self.patterns["set_weight"].search(text, match.end())
        if weight_match:
            weight = _number(weight_match.group(1))
            weight_unit = "kg" if "k" in weight_match.group(2) else "lbs"

        sets = [WorkoutSet(reps=reps, weight=weight, weight_unit=weight_unit) for _ in range(count)]
        return sets, exercise

    def _match_mood(self, text: str, raw_text: str) -> Optional[ParsedActivity]:
        if not self.patterns["mood_keyword"].search(text):
            return None
        mood = next((mood for pattern, mood in self._moods if pattern.search(text)), None)
        if mood is None:
            return None
        return ParsedActivity(
            kind=ActivityKind.MOOD,
            payload=MoodPayload(mood=mood),
            confidence=MOOD_CONFIDENCE,
            raw_text=raw_text,
        )


# ============================================================================
# CANONICAL PHRASING
# ============================================================================

_INTENSITY_PHRASE = {"low": "low intensity", "medium": "medium intensity", "high": "high intensity"}


def canonical_text(activity: ParsedActivity) -> str:
    """
    Render an activity as the phrase the fast path parses back to the same payload

    e.g. "weight 175 lbs", "energy 8/10", "ran 5 km in 25 minutes".
    Unknown activities render as their original text.
    """
    payload = activity.payload
    kind = activity.kind

    if kind is ActivityKind.WEIGHT:
        return f"weight {_fmt(payload.value)} {payload.unit}"
    if kind is ActivityKind.ENERGY:
        return f"energy {payload.level}/10"
    if kind is ActivityKind.SLEEP:
        if payload.quality:
            return f"{_fmt(payload.hours)} hours of {payload.quality} sleep"
        return f"slept {_fmt(payload.hours)} hours"
    if kind is ActivityKind.WATER:
        return f"drank {_fmt(payload.amount)} {payload.unit} water"
    if kind is ActivityKind.FOOD:
        names = [
            item.name if item.quantity is None else f"{_fmt(item.quantity)} {item.name}"
            for item in payload.items
            if item.name != "meal"
        ]
        phrase = "had " + " and ".join(names) if names else "had"
        if payload.meal:
            phrase += f" for {payload.meal}" if names else f" {payload.meal}"
        return phrase
    if kind is ActivityKind.WORKOUT:
        return _canonical_workout(payload)
    if kind is ActivityKind.MOOD:
        return f"feeling {payload.mood}"
    return payload.original_text or activity.raw_text


def _canonical_workout(payload: WorkoutPayload) -> str:
    verbs = {activity: verb for _, activity, verb in CARDIO_ACTIVITIES}
    if payload.sets:
        first = payload.sets[0]
        phrase = f"{len(payload.sets)} sets of {first.reps or 0} {payload.activity}"
        if first.weight is not None:
            phrase += f" at {_fmt(first.weight)} {first.weight_unit or 'lbs'}"
    else:
        phrase = verbs.get(payload.activity, payload.activity)
    if payload.distance is not None:
        phrase += f" {_fmt(payload.distance)} {payload.distance_unit or 'km'}"
    if payload.duration is not None:
        phrase += f" in {_fmt(payload.duration)} minutes"
    if payload.intensity:
        phrase += f" at {_INTENSITY_PHRASE[payload.intensity]}"
    return phrase
