"""Internal constants shared across the library."""

DEFAULT_AUTHORITY_URL = "https://resolver.confidence.dev/v1"
RESOLVE_ENDPOINT = "/flags:resolve"
USER_AGENT = "stickyresolve-python"
DEFAULT_AUTHORITY_TIMEOUT: float = 10.0

# Key the local resolver and the authority use for the unit inside the
# evaluation context.
TARGETING_KEY = "targeting_key"

UNRESOLVED_LOAD_MESSAGE = "materialization store unavailable"
UNRESOLVED_SAVE_MESSAGE = "materialization could not be persisted"
UNRESOLVED_MISSING_MESSAGE = "materialization data missing after reload"
UNRESOLVED_ABSENT_MESSAGE = "flag not present in resolver response"
