"""
chuk-mcp-viewscout: Line-of-Sight, Water Visibility & View Scoring MCP Server

Casts viewshed rays over Copernicus DEM terrain on a spherical earth,
detects visible water, and rates viewpoints with a 0-100 ViewScore.
"""
