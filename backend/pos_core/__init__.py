"""
POS core: transactional backend for orders, inventory costing and offers.
"""
