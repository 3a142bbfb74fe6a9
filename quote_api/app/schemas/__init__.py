"""
Pydantic schema definitions.

Schemas describe the quote entity, the validated form input and the
JSON envelopes returned by the API.  They are kept apart from the
SQL in ``services`` so the wire representation does not depend on
the storage layout.
"""
