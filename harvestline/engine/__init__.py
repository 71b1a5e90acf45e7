"""Pure production-planning core: no I/O and no clock reads.

Every function takes the records it works on plus an explicit ``today`` or
``now`` and returns new values; inputs are never mutated.
"""
