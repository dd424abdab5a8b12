"""
Organizational Analysis Kernel — Threshold Constants (Default Values)

All magic numbers live here as module-level defaults.
Runtime constants are injected at engine construction and stored in
ModelState.constants (AnalysisConstants).
"""

# --- Affiliation strength ---
# Ratings >= this cutoff are "strong"; ratings in (0, cutoff) are "weak".
STRONG_AFFILIATION_THRESHOLD: float = 0.5

# --- Rating domain ---
ALLOW_NEGATIVE_RATINGS: bool = True

# --- Alignment ---
# Threshold used by the HTTP adapter when the caller omits one.
DEFAULT_MINIMUM_RELATION_DEGREE: float = 0.0
