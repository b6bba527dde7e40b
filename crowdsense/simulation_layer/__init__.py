"""
Simulation Layer - mobility, tasks and candidate matching.
"""
