"""Chat log reassembly, grammar, diagnostics and presence tracking."""
