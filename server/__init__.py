"""HTTP surface for Suited Rummy."""
