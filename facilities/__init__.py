"""
Campus facilities persistence layer.

Rooms (and other facility records) are stored as entity-attribute-value
records on top of a relational database; see `facilities.db`.
"""
