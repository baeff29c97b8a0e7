"""
Routes package - Flask blueprints
"""

from .library import library_bp
from .scan import scan_bp
from .system import system_bp

__all__ = ["library_bp", "scan_bp", "system_bp"]
