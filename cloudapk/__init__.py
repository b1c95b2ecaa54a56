"""
cloudapk - Cloud build pipeline for hybrid (Cordova) mobile apps.

Prepares config.xml and www/index.html, pushes to trigger a GitHub
Actions build, waits for the run, and downloads the built artifact.

Usage:
    python -m cloudapk [project_dir] [options]
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
