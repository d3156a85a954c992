"""
revdeps Shared Module
=====================

Configuration, logging and console helpers shared by the revdeps packages.
"""

from shared.config import RevdepsSettings

__all__ = ["RevdepsSettings"]
