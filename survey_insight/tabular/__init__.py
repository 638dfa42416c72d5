"""Tabular file decoding (Excel / CSV via pandas)."""
