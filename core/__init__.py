# =============================================================================
# core/__init__.py
# =============================================================================
# Framework-free logic of the research server: configuration, cache pools,
# retry policy, the three upstream adapters (Google Custom Search, Wikipedia,
# generic page fetch), the Operation Dispatcher and the Resource Reader.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  The dispatcher takes plain
#   arguments and returns a Success/Failure Outcome; tools/ turns that into
#   MCP responses.
# =============================================================================
