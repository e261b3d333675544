"""HTTP surface for tokenscope."""
