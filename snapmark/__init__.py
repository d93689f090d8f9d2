"""
SnapMark - a small annotation editor for captured images.

This package contains the main application modules:
- core: Application core, image loading
- ui: Main window
- editor: Annotation engine, canvas and editor widget
- services: Application services (config, logging, delivery)
"""

__version__ = "0.1.0"
