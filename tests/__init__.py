"""
Test Suite
==========

Test suite matching the spec2html/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: Tests that bind real sockets and exercise components together
"""
