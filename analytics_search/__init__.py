"""Analytics search: rule-tree filters, report aggregations and scroll fetching."""
