# carrymatch/core/__init__.py
"""
Domain core: matching rules with no I/O.
"""
