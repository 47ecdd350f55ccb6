"""Game domain services: board rules, encoding, scoring and the phase scheduler.

Everything except the scheduler and record store is pure and can be
imported by HTTP routes and socket handlers without touching app state.
"""
