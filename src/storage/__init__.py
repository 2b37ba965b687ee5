"""Preference persistence: key layout (``schema``) and the observable store."""
