"""
grocery-list: Grocery list with healthier-alternative enrichment.

Keeps an in-memory list of grocery items and enriches each one with a
healthier alternative suggestion (OpenRouter) and a representative image
(Pexels), fetched concurrently as items are added.
"""

__version__ = "0.1.0"
