"""
barscope: OHLC bar analysis.

Resampling, technical indicators, extrema, trend phases and
support/resistance levels over bar series.
"""

__version__ = "0.1.0"
