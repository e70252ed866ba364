"""
Sales Analytics API
"""
