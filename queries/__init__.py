"""
queries
Fixed, parameterized SQL statements, one module per table. No logic lives here.
"""
