NOW = 1_700_000_000.0
