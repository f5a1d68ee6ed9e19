"""
Rule-based risk policy: thresholds and weights

Every number the deterministic scorer uses lives here so it can be reviewed
and tuned without touching scoring logic.

Conventions:
  - Environmental crossings are graduated: BASE points on crossing the
    threshold, plus SLOPE points per unit past it, capped at CAP.
  - Scores are 0-100 after clamping; individual impacts are 0-100 too.
  - Thresholds are strict ("> 70 %" means 70 % itself is comfortable).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class GraduatedRule:
    """Points for a reading past a threshold: base + slope * distance, capped."""
    threshold: float
    base: float
    slope: float
    cap: float

    def points(self, distance: float) -> int:
        if distance <= 0:
            return 0
        return int(round(min(self.cap, self.base + self.slope * distance)))


# ── Environmental thresholds ─────────────────────────────────────────────────
# Humidity (%): excess moisture above, dryness below
HUMIDITY_HIGH = GraduatedRule(threshold=70.0, base=15.0, slope=1.0, cap=25.0)
HUMIDITY_LOW = GraduatedRule(threshold=30.0, base=15.0, slope=1.0, cap=30.0)

# Temperature (°C): outside the comfortable 5-30 band
HEAT = GraduatedRule(threshold=30.0, base=10.0, slope=1.0, cap=20.0)
COLD = GraduatedRule(threshold=5.0, base=12.0, slope=1.0, cap=25.0)

# UV index
UV_HIGH = GraduatedRule(threshold=7.0, base=12.0, slope=3.0, cap=25.0)

# Air quality index
AQI_POOR = GraduatedRule(threshold=100.0, base=12.0, slope=0.1, cap=35.0)

# Overall pollen (0-10 scale)
POLLEN_HIGH = GraduatedRule(threshold=6.0, base=12.0, slope=3.0, cap=25.0)

# Wind speed (km/h): dries skin and spreads allergens
WIND_STRONG = GraduatedRule(threshold=25.0, base=8.0, slope=0.5, cap=12.0)


# ── Personal triggers ────────────────────────────────────────────────────────
# Extra points when a declared trigger matches an active condition
TRIGGER_MATCH_BONUS = 10

# Condition id -> whole words or phrases that identify it inside a free-form
# trigger name. Matching is on word boundaries, so inflections are listed.
TRIGGER_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "humidity_high": ("humid", "humidity", "moisture", "sweat", "sweating", "sweaty", "muggy"),
    "humidity_low": ("humidity", "dry air", "dryness", "dry weather"),
    "heat": ("heat", "heatwave", "hot", "warm", "warmth", "temperature", "temperatures",
             "sweat", "sweating", "sweaty"),
    "cold": ("cold", "winter", "freezing", "frost", "temperature", "temperatures"),
    "uv": ("uv", "sun", "sunlight", "sunshine", "sunburn"),
    "air_quality": ("pollution", "air quality", "smog", "smoke", "dust"),
    "pollen": ("pollen", "allergen", "allergens", "hay fever", "grass", "grasses",
               "tree", "trees", "weed", "weeds"),
    "wind": ("wind", "windy"),
}

# Words that rule a trigger out for a condition ("Low humidity" is not humid)
TRIGGER_EXCLUSIONS: Dict[str, Tuple[str, ...]] = {
    "humidity_high": ("low", "dry"),
    "humidity_low": ("high",),
    "heat": ("cold",),
    "cold": ("heat", "hot"),
}


# ── Symptom history ──────────────────────────────────────────────────────────
# itch (0-5) + redness (0-3) => combined 0-8
SYMPTOM_TOTAL_MAX = 8.0

# Mean combined score at or above which recent symptoms count as elevated
SYMPTOM_MEAN_THRESHOLD = 4.0
SYMPTOM_MEAN_WEIGHT = 3.0          # points per unit of mean
SYMPTOM_MEAN_CAP = 24

# Newer-half mean minus older-half mean that counts as "rising"
SYMPTOM_RISE_EPSILON = 1.0
SYMPTOM_RISE_POINTS = 10

# Share of recent check-ins with medication that counts as frequent use
MEDICATION_FREQUENCY_THRESHOLD = 0.5
MEDICATION_POINTS = 8


# ── Predictions ──────────────────────────────────────────────────────────────
# Fraction of the gap to the historical mean closed over seven days
HISTORY_SMOOTHING = 0.5
# Minimum change (points) before a trajectory is called improving/worsening
TRAJECTORY_EPSILON = 5


# ── Recommendation priorities (by factor impact) ─────────────────────────────
PRIORITY_CRITICAL_IMPACT = 25
PRIORITY_HIGH_IMPACT = 15
PRIORITY_MEDIUM_IMPACT = 8

# Maximum recommendations returned
MAX_RECOMMENDATIONS = 8
