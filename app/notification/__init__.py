"""Membership expiry reminder package.

Finds memberships nearing expiry, resolves a WhatsApp destination per
member, renders and sends a reminder, and logs every attempt to the
append-only notification log.
"""
