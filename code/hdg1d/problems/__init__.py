"""
Ready-made problem configurations. Each module exposes create_configuration().
"""
