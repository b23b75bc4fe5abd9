"""Hostel billing: dues, payment allocation and billing period rollover."""
