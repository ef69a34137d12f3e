"""HTTP and WebSocket surface for the floor coordinator."""
