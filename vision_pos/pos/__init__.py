"""Point-of-sale modules: catalog, cart, stats and exports"""
