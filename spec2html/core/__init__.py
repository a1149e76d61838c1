"""
Core Business Logic
==================

Core modules for turning a source document into finished HTML.

Modules:
- rendering: render orchestration, diagnostics, browser renderer, sanitization
- serving: ephemeral static content server for local documents
- output: destination handling for the finished HTML
- errors: pipeline error taxonomy
"""
