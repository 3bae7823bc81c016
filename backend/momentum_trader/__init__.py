"""
Momentum Trader

Fetches candles from the Coinbase Exchange API, computes RSI and moving
averages, and submits a market order when the signal triggers.
"""

__version__ = "0.1.0"
