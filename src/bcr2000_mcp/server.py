"""MCP server entry point for programming Behringer BCR2000 controllers.

Exposes tools and resources via the Model Context Protocol using the
official Python MCP SDK with stdio transport. Every tool that touches a
device opens its own session and closes it before returning.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import BCRError, DeviceUnavailableError, TransmissionError
from .models.bcr2000 import bcr2000_catalog
from .models.controls import ControlCatalog
from .protocol.framing import build_frame
from .protocol.script import catalog_script, script_for
from .session import DeviceSession
from .transport.midi_connection import (
    DEFAULT_NAME_PREFIX,
    MidiConnection,
    list_devices as _list_devices,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "bcr2000",
    instructions="MCP server for programming Behringer BCR2000 MIDI controllers",
)


def _error(e: BCRError) -> dict[str, Any]:
    result: dict[str, Any] = {"error": str(e), "type": type(e).__name__}
    if isinstance(e, TransmissionError):
        result.update(e.context())
    return result


# ─── DRIVER ──────────────────────────────────────────────────────────

def program_device(
    port_name: str,
    catalog: ControlCatalog | None = None,
) -> dict[str, Any]:
    """Open one device, configure it, and close it again."""
    if catalog is None:
        catalog = bcr2000_catalog()
    with DeviceSession(MidiConnection(port_name)) as session:
        result = session.configure(catalog)
    out = result.to_dict()
    out["device"] = port_name
    return out


def program_all(
    name_prefix: str = DEFAULT_NAME_PREFIX,
    catalog: ControlCatalog | None = None,
) -> list[dict[str, Any]]:
    """Configure every connected device whose name matches ``name_prefix``.

    Devices that cannot be opened are skipped. A transmission failure is
    reported for that device and the next device is still programmed.
    """
    if catalog is None:
        catalog = bcr2000_catalog()
    results = []
    for info in _list_devices(name_prefix):
        logger.info("Found %s", info.name)
        try:
            results.append(program_device(info.name, catalog))
        except DeviceUnavailableError as e:
            logger.warning("Skipping %s: %s", info.name, e)
            results.append({"device": info.name, "skipped": True, "reason": str(e)})
        except TransmissionError as e:
            result = _error(e)
            result["device"] = info.name
            results.append(result)
    return results


# ─── DISCOVERY TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def list_devices(name_prefix: str = DEFAULT_NAME_PREFIX) -> dict[str, Any]:
    """List connected controllers whose MIDI output name starts with a prefix.

    Args:
        name_prefix: Port name prefix (default "BCR2000").
    """
    return {"devices": [info.to_dict() for info in _list_devices(name_prefix)]}


# ─── SCRIPT PREVIEW TOOLS ────────────────────────────────────────────

@mcp.tool()
def preview_script(label: str) -> dict[str, Any]:
    """Show the BCL block and SysEx frames that program one control.

    Args:
        label: Control label, e.g. "PU_1" or "KL_3".
    """
    catalog = bcr2000_catalog()
    try:
        control = catalog.by_label(label)
    except KeyError:
        return {"error": f"Unknown control '{label}'"}

    lines = script_for(control)
    return {
        "control": control.to_dict(),
        "script": lines,
        "frames": [build_frame(line, i).hex(" ") for i, line in enumerate(lines)],
    }


@mcp.tool()
def preview_catalog() -> dict[str, Any]:
    """Show every BCL block a full configuration run sends, in order."""
    blocks = catalog_script(bcr2000_catalog())
    return {
        "blocks": ["\n".join(block) for block in blocks],
        "block_count": len(blocks),
        "frame_count": sum(len(block) for block in blocks),
    }


# ─── PROGRAMMING TOOLS ───────────────────────────────────────────────

@mcp.tool()
def configure_device(port_name: str) -> dict[str, Any]:
    """Program every control of one BCR2000.

    Sends the init block, then one block per control. On failure the
    result names the control that failed and the last one configured.

    Args:
        port_name: MIDI output port name, as returned by list_devices.
    """
    try:
        return program_device(port_name)
    except BCRError as e:
        return _error(e)


@mcp.tool()
def configure_all(name_prefix: str = DEFAULT_NAME_PREFIX) -> dict[str, Any]:
    """Program every connected controller whose port name matches a prefix.

    Args:
        name_prefix: Port name prefix (default "BCR2000").
    """
    return {"results": program_all(name_prefix)}


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("bcr2000://catalog")
def catalog_resource() -> str:
    """Controls of the BCR2000 and the parameters they are bound to."""
    return json.dumps(bcr2000_catalog().to_dict(), indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
