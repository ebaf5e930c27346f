"""Configuration validation and pricing engine.

Pure, synchronous rule evaluation over data already loaded by the caller:
compatibility constraints, availability filtering, validation, and
priority-ordered price computation. The configuration lifecycle, the
generic async repository and the dataclass configuration live here too.
"""
