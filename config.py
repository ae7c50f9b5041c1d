import os

# Defaults
DEFAULT_LANG = os.getenv("AUDIT_DEFAULT_LANG", "en")
SUPPORTED_LANGS = ("en", "ro")

# Throttling method used when the artifacts bundle does not say
# ("simulate" expects a simulated LCP estimate in the bundle, "devtools"/"provided" use observed timings)
THROTTLING_METHOD = os.getenv("AUDIT_THROTTLING_METHOD", "devtools")

# Logging
LOG_LEVEL = os.getenv("AUDIT_LOG_LEVEL", "INFO").upper()
