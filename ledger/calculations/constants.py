"""
Calculation Constants for Autoledger

Centralized location for the numeric thresholds used by the history engine.
Values come from Config where they are operator-tunable.
"""

from config import Config

# Consumption Constants
MAX_PLAUSIBLE_CONSUMPTION = Config.MAX_PLAUSIBLE_CONSUMPTION  # km/l at or above this is an outlier
MIN_PLAUSIBLE_CONSUMPTION = 0.0  # Values at or below this are discarded
CONSUMPTION_DECIMALS = 1

# Trend Constants
TREND_MIN_DAYS = Config.TREND_MIN_DAYS  # Shorter windows get no trend classification
TREND_THRESHOLD_PERCENT = Config.TREND_THRESHOLD_PERCENT  # |change| above this is a trend

# Projection Constants
DAYS_PER_MONTH = 30  # Projection month length

# Rounding
MONEY_DECIMALS = 2
VOLUME_DECIMALS = 1
PERCENT_DECIMALS = 1

# Percentage Bounds
MAX_PERCENTAGE = 100.0
