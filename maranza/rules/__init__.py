"""Action precondition rules.

Centralizes the checks that run before any state is computed, so every route
refuses requests the same way and with the same messages.
"""
