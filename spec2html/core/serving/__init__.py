"""
Serving Module
==============

Ephemeral HTTP server exposing the working directory to the renderer.
"""
