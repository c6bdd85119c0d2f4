"""
Portfolio Projects

Portfolio site with Google sign-in and a small project catalogue.
"""

__version__ = "0.1.0"
