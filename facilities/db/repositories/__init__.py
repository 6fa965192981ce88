"""
Per-concern repository modules for the EAV store.

`attributes` resolves attribute definitions, `values` reads and writes typed
value rows, and `rooms` composes both into the room facade.
"""
