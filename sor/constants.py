"""Protocol constants for the smart order router.

Fixed-point scales and pool limits shared by the pool math modules.
"""

# 18-decimal fixed point ("WAD") and the 36-decimal scale used by FX pools
WAD = 10**18
RAY = 10**36

# Stable pool amplification values carry three extra decimals
AMP_PRECISION = 1000

# Weighted pools reject trades above 30% of the relevant balance
MAX_IN_RATIO = 3 * 10**17
MAX_OUT_RATIO = 3 * 10**17

# Largest balance the Vault can hold (uint112); bounds BPT minting on linear pools
MAX_TOKEN_BALANCE = 2**112 - 1

# FX pool price feeds are quoted with 8 decimals unless the snapshot says otherwise
DEFAULT_FX_ORACLE_DECIMALS = 8

# Pseudo-address callers use for the chain's native asset
NATIVE_ADDRESS = "0x0000000000000000000000000000000000000000"
