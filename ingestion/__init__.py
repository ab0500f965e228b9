"""
Input Normalization Module

Canonicalizes raw portfolio inputs before analysis:
- Sector, country and region label normalization
- Price series ordering and deduplication
- Boundary validation of caller-supplied records
"""

__version__ = "0.0.1"
