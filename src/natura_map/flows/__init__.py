"""
Prefect flows.

Flows:
- prefetch: Warm the result cache with the quick-select presets and export
  the default preset as GeoJSON

Usage (local):
    python -m natura_map.flows.prefetch

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'prefetch-presets/default'
"""
