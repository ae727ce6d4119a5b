"""
devmirror - static asset mirroring for backend-embedded dev servers

devmirror copies a filtered subset of a web project's files into a backend
build-output directory and publishes a small JSON descriptor telling the
backend where the live dev server can be reached.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
