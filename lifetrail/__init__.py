"""
Location-history explorer package.

Turns pre-parsed visits and trips into smoothed, time-encoded trails, density
grids and statistics for an animated deck.gl view. The public entrypoint for
CLI usage is ``lifetrail.cli.main``.
"""

from .cli import main  # noqa: F401
