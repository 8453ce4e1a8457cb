"""
Order fulfillment pipeline.

A sequential, short-circuiting, fallible pipeline executor applied to a
simulated order-fulfillment flow, with four front-ends showing different
control-flow styles over the same executor.
"""

__version__ = "0.1.0"
