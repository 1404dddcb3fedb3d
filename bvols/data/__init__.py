"""
Example datasets.
"""

from .synthetic import generate_gravity_data

__all__ = ["generate_gravity_data"]
