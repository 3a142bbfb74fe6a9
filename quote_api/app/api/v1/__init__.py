"""
Version 1 of the API.

Breaking changes to the quote envelopes should go into a new version
subpackage so existing clients keep working.
"""
