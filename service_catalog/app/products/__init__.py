"""
Products package: the Product entity, its projections and the use cases.
"""
