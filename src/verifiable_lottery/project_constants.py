"""
Default rules for the recurring lottery.

These values define the public rules of a draw when nothing overrides them.
Changing them changes who may enter and when a draw may start.
"""

# Amounts are integer base units, 18 decimals
DECIMALS = 18

# Minimum contribution to enter (0.01 in display units)
DEFAULT_ENTRY_FEE = 10**16

# Minimum seconds between draws
DEFAULT_INTERVAL_S = 30

# Oracle request parameters
DEFAULT_KEY_HASH = "0x474e34a077df58807dbe9c96d3c009b23b3c6d0cce433e59bbf5b34f823bc56c"
DEFAULT_SUBSCRIPTION_ID = 0
DEFAULT_REQUEST_CONFIRMATIONS = 3
DEFAULT_CALLBACK_GAS_LIMIT = 500_000

# Exactly one random word is consumed per round
NUM_WORDS = 1

# Keeper cadence
DEFAULT_POLL_INTERVAL_S = 5.0
