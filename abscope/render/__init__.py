"""Color tables for rendering rasters."""
