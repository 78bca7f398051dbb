"""
Domain package - records, form state and validation rules.

Nothing in here touches the database or the web framework; the action
handlers in `invoicedesk.services` compose these pieces with persistence.
"""
