"""Tradr backend: Yahoo fantasy hockey sync, athlete valuation and trade analysis."""
