"""
Output Module
=============

Persists finished HTML to its destination.
"""
