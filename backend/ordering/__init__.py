"""Sequential order ID allocation and retrying order submission."""
