"""Short-code pairing between a mobile client and a local agent."""
