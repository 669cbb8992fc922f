"""Internal constants shared across the library."""

USER_AGENT = "pyclientutils/1"

DEFAULT_ID_PREFIX = "id"
ID_SUFFIX_LENGTH = 5
ID_SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

# Position request defaults (seconds).
GEO_TIMEOUT_S = 10.0
GEO_MAXIMUM_AGE_S = 600.0

ENV_PREFIX = "CLIENTUTILS_"
