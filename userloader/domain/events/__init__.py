"""Domain Event definitions.

Significant occurrences during dispatch (start, retry, success, failure),
delivered to an optional diagnostic hook.
"""
