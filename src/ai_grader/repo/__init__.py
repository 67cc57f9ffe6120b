"""Repository scanning and detection."""
