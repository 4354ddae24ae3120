"""Contact normalization package.

Normalizers take a raw contact string from the membership store and
return a canonical form, or ``None`` when the value is unusable.
"""
