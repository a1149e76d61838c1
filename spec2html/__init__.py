"""
spec2html
=========

Converts documents that finish rendering themselves in a browser into static
HTML snapshots.

This package provides:
- Render orchestration with timeouts and halt policies
- A severity-tiered diagnostic channel for renderer events
- An ephemeral static server for rendering local files
- Post-render markup repair for inline SVG
- Browser automation with Playwright
"""

__version__ = "1.0.0"
