"""Award, probability, goose and playoff engines plus the update runs that drive them."""
