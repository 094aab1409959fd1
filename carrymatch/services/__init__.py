# carrymatch/services/__init__.py
"""
Deployable services.
"""
