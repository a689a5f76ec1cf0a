"""
NASA Explorer: API key management and clients for public NASA data feeds.

Astronomy Picture of the Day, Mars rover photos, near-Earth objects,
Mars weather, Earth imagery, natural events, media search, technology
transfer and the Open Science Data Repository.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

__version__ = "0.1.0"
__author__ = "Meir Miyara"
__email__ = "meir.miyara@gmail.com"
