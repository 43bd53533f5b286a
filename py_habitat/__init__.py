"""
py-habitat: flatness and habitability scoring for procedural terrain.
"""

__version__ = "0.1.0"
