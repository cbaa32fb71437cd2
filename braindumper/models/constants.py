"""Constants for braindumper.

This module centralizes all magic numbers and default values used by the scheduling engine.
"""


# Task defaults
DEFAULT_DURATION_MINUTES = 30

# Availability
SLOT_GRANULARITY_MINUTES = 15
DEFAULT_WORKING_HOURS_START = "09:00"
DEFAULT_WORKING_HOURS_END = "17:00"
DEFAULT_WORKING_DAYS = (0, 1, 2, 3, 4)  # Monday-Friday
DEFAULT_TIMEZONE = "UTC"

# Suggestions
DEFAULT_SUGGESTION_COUNT = 5
DEFAULT_SEARCH_HORIZON_DAYS = 7
PARTIAL_FIT_PENALTY = 0.6  # Score multiplier for slots shorter than requested

# Scoring weights (must sum to 100)
WEIGHT_TASK_TYPE_PREFERENCE = 25
WEIGHT_DUE_DATE_PROXIMITY = 20
WEIGHT_BUFFER_AVAILABILITY = 15
WEIGHT_CONTIGUOUS_TIME = 15
WEIGHT_PRIORITY_ALIGNMENT = 15
WEIGHT_TIME_OF_DAY = 10

# Proposals
PROPOSAL_TTL_MINUTES = 60
PROPOSAL_SUGGESTIONS_PER_TASK = 3
