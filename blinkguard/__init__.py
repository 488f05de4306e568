"""
BlinkGuard: transaction safety analysis for Solana Blinks.

Scores a simulated transaction before the user signs it and keeps a
community registry of known-malicious URLs. Modular layout: analysis
engine, registry store/matcher, and a FastAPI server on top.
"""

__version__ = "0.1.0"
