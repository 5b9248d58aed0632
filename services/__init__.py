"""
services
Operations over the storage handle. Every function takes the Database first.
"""
