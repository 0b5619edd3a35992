"""Resort booking core: lifecycle, pricing, cancellation and refunds."""
