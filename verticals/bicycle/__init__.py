"""Bicycle vertical: the custom mountain bike catalog.

- Seed data for one configurable bike with five part types
- Compatibility constraints between frames, wheels and rims
- A conditional pricing rule for the matte full-suspension frame
- ``python -m verticals.bicycle`` prices a sample build end to end
"""
