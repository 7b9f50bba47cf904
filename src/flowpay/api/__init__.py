"""HTTP layer: FastAPI app factory, routes, and the x402 payment gate."""
