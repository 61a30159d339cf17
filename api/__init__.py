"""HTTP surface for the traffic estimation engine."""
