"""
Chanjo - childhood immunization schedule engine and tracking backend.
"""

__version__ = "0.1.0"
