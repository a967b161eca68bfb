"""Utilities package for the Intake backup engine.

Leaf helpers (constants, config, datetime_utils) are imported by the models,
so this package does not import anything eagerly.
"""
