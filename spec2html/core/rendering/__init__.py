"""
Rendering Module
===============

Render orchestration and output repair.

Components:
- orchestrator: drives one rendering session end to end
- renderer: Playwright-backed browser renderer
- diagnostics: diagnostic channel and terminal reporter
- sanitizer: inline SVG markup repair
"""
