"""Vertex helpers, tolerant math and tile mask rasterization."""
