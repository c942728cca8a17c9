"""
Pydantic schema definitions for API payloads and stored records.

Each domain (users, groups, loans, proposals, activities) defines its
own models: a ``Create`` schema holding the insertable subset of
fields, a ``Read`` schema for stored records and an ``Update`` schema
for partial updates.  Field names are snake_case in Python and
camelCase on the wire.
"""
