"""
CredRelay MCP Server - Main entry point.

Exposes credential onboarding to MCP clients:
- Batch import with automatic verification and rollback
- Import preview (parse only, no registry calls)
- Registry credential listing
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

# Initialize server
mcp = FastMCP(
    "CredRelay Credential Onboarding",
    dependencies=["credrelay"],
)

logger = logging.getLogger(__name__)


def _item_to_dict(item) -> dict:
    return {
        "index": item.index,
        "status": item.status.value,
        "identity": item.identity,
        "credential_id": item.credential_id,
        "usage": item.usage,
        "error": item.error,
        "rollback": item.rollback.value if item.rollback else None,
        "rollback_error": item.rollback_error,
    }


# =============================================================================
# Onboarding Tools
# =============================================================================


@mcp.tool()
def import_credentials(
    raw_json: str,
    skip_flagged: bool = True,
    settle_seconds: float | None = None,
) -> dict:
    """
    Import a batch of credentials into the registry and verify each one.

    Accepts either a flat JSON array/object of credential fields or an
    account export envelope ({"accounts": [{"credentials": {...}}]}).
    Each credential is checked for duplicates, created, probed, and rolled
    back (disabled then deleted) if verification fails.

    Args:
        raw_json: Batch JSON text
        skip_flagged: Skip envelope accounts whose status is "error"
        settle_seconds: Override the pause between create and probe

    Returns:
        Batch summary and per-item results
    """
    from credrelay.onboarding import OnboardingPipeline, ParseError, PipelineConfig
    from credrelay.registry import RegistryError

    config = PipelineConfig.from_env()
    config.skip_flagged = skip_flagged
    if settle_seconds is not None:
        config.settle_seconds = settle_seconds

    pipeline = OnboardingPipeline(config=config)
    try:
        batch = pipeline.parser.parse(raw_json)
    except ParseError as e:
        return {"success": False, "error": f"Failed to parse input: {e}"}

    try:
        run = pipeline.run(batch)
    except RegistryError as e:
        logger.exception("Could not load existing credentials from registry")
        return {"success": False, "error": f"Registry unavailable: {e}"}
    finally:
        pipeline.registry.close()

    result = run.summary.to_dict()
    result.update(
        {
            "format": batch.format.value,
            "dropped": batch.dropped,
            "items": [_item_to_dict(item) for item in run.items],
        }
    )
    if run.summary.needs_manual_cleanup:
        result["warning"] = (
            f"{len(run.summary.rollback_failed_ids)} credentials could not be rolled back; "
            "disable or delete them manually"
        )
    return result


@mcp.tool()
def preview_import(raw_json: str) -> dict:
    """
    Parse a credential batch without contacting the registry.

    Args:
        raw_json: Batch JSON text

    Returns:
        Detected format, entry counts, and redacted per-entry previews
    """
    from credrelay.onboarding import ParseError, hash_token, parse_batch

    try:
        batch = parse_batch(raw_json)
    except ParseError as e:
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "format": batch.format.value,
        "total_found": batch.total_found,
        "valid": len(batch.inputs),
        "dropped": batch.dropped,
        "entries": [
            {
                "index": i + 1,
                "hash_prefix": hash_token(cred.token)[:12],
                "auth_method": "idc" if cred.client_id and cred.client_secret else "social",
                "identity": cred.identity_hint,
                "flagged": cred.is_flagged,
            }
            for i, cred in enumerate(batch.inputs)
        ],
    }


# =============================================================================
# Registry Tools
# =============================================================================


@mcp.tool()
def list_registry_credentials() -> list[dict]:
    """
    List credentials currently held by the registry.

    Returns:
        Credential id, identity, status and content hash prefix
    """
    from credrelay.registry import RegistryClient

    with RegistryClient() as registry:
        records = registry.list_credentials()

    return [
        {
            "id": record.id,
            "email": record.email,
            "disabled": record.disabled,
            "priority": record.priority,
            "auth_method": record.auth_method,
            "hash_prefix": record.refresh_token_hash[:12] if record.refresh_token_hash else None,
        }
        for record in records
    ]


# =============================================================================
# Resources
# =============================================================================


@mcp.resource("formats://list")
def list_input_formats() -> str:
    """List accepted batch input formats."""
    return """- flat: [{"token": "...", "clientId"?: "...", "clientSecret"?: "...", "authRegion"?: "...", "apiRegion"?: "...", "priority"?: 0, "machineId"?: "..."}]
- envelope: {"version": 1, "accounts": [{"email"?: "...", "status"?: "...", "machineId"?: "...", "credentials": {"token": "...", "clientId"?: "...", "clientSecret"?: "...", "region"?: "..."}}]}
"""


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Run the MCP server."""
    logging.basicConfig(level=logging.INFO)
    mcp.run()


if __name__ == "__main__":
    main()
