"""Core components for packet path simulation.

This module contains the fundamental classes for packet path simulation,
including BufferState, PathGraph, KernelFunction, PacketPath and Simulator.
"""
