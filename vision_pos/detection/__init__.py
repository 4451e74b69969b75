"""Frame classification and continuous detection"""
