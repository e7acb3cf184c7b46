"""Utilities for packet path simulation.

This module provides contract export, buffer metrics and visualization
helpers built on top of the core simulator.
"""
