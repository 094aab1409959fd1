# carrymatch/shared/__init__.py
"""
Models and event schemas shared across the service and its clients.
"""
