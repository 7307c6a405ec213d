# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP presentation layer.
#
# ARCHITECTURAL ROLE:
#   tools/ translates between MCP and core/.  mcp_server.py:
#     1. Declares each operation as an @mcp.tool() with typed parameters
#     2. Declares the cache-backed resources (google://, wikipedia://)
#     3. Converts Outcomes into dicts / JSON text
#
# WHAT TOOLS DO NOT DO:
#   - No caching, retrying or provider calls (that's core/dispatcher.py)
#   - No raising: every failure is an {"error": ..., "kind": ...} dict
# =============================================================================
