"""
Infrastructure package - database access and the path revalidation cache.
"""
