"""
Core Package

This package contains the geometric and numeric engine of trackheat.

Structure:
- color/ - Threshold-based color interpolation
- heatmap/ - Line rasterization, density accumulation and projection
- intersections/ - Spatial grid and cross-track intersection detection
- regions/ - Cached point-in-polygon region visit analysis

Usage:
Core modules are called by the io and cli layers. Do not import io/cli modules from core.
"""
