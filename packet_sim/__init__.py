"""Packet path simulation for the Linux networking stack.

Models kernel packet paths as graphs of functions and simulates how the
sk_buff changes as a packet walks them.
"""

__version__ = "0.1.0"
