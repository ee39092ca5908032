"""Commission, earnings and payout services."""
