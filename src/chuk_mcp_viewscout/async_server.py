#!/usr/bin/env python3
"""
Async ViewScout MCP Server using chuk-mcp-server

Viewpoint analysis over DEM terrain: radial line-of-sight, visible water
detection, and ViewScore rating.
"""

import logging
import os

from chuk_mcp_server import ChukMCPServer

from .constants import DEFAULT_INTERPOLATION, DEFAULT_SOURCE, EnvVar, ServerConfig
from .core.viewscout_manager import ViewScoutManager
from .tools.analysis import register_analysis_tools
from .tools.discovery import register_discovery_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer(ServerConfig.NAME)

# Create ViewScout manager instance
manager = ViewScoutManager(
    default_source=os.environ.get(EnvVar.DEM_SOURCE, DEFAULT_SOURCE),
    interpolation=os.environ.get(EnvVar.INTERPOLATION, DEFAULT_INTERPOLATION),
)

# Register all tool modules
register_discovery_tools(mcp, manager)
register_analysis_tools(mcp, manager)

# Run the server
if __name__ == "__main__":
    logger.info("Starting ViewScout MCP Server...")
    logger.info(f"Terrain: {manager.default_source} ({manager.interpolation})")
    mcp.run(stdio=True)
