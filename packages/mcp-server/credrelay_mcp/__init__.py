"""
CredRelay MCP Server - Model Context Protocol server for credential onboarding.

Exposes onboarding tools to MCP clients:
- Batch import with verification and rollback
- Import preview
- Registry credential listing

Usage:
    # Via CLI
    credrelay-mcp

    # Via Python
    from credrelay_mcp import server
    server.main()

    # Via an MCP client config (.mcp.json)
    {
        "mcpServers": {
            "credrelay": {
                "command": "credrelay-mcp",
                "env": {"CREDRELAY_ADMIN_URL": "http://127.0.0.1:8990/api/admin"}
            }
        }
    }
"""

__version__ = "0.1.0"
