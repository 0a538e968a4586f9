"""Service layer for flowgraph."""
