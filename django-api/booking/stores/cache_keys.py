ACTIVE_PRODUCTS = "booking:products:active"
ACTIVE_PRICING_RULES = "booking:pricing_rules:active"
