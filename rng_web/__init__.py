"""Signed random numbers from random.org, with replayable proofs."""

__version__ = "0.2.0"
