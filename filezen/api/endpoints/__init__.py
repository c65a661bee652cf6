"""
Typed FileZen endpoint calls.

Each function builds one request's form fields and returns the decoded result.
"""
