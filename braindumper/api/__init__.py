"""HTTP API for braindumper."""
