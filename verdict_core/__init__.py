"""Verdict: field-level evaluation of AI system outputs."""

__version__ = "0.1.0"
