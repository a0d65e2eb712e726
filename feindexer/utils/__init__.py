"""Pure helpers shared by every indexer: ordering, value transforms, ID labels, logging."""
